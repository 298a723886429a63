"""Layered YAML configuration loader (global -> language -> framework)."""
import copy
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

import yaml

from benchmarker.core.errors import ConfigNotFound, ConfigParseError, UnknownProvider
from benchmarker.core.logger import get_logger
from benchmarker.models.provider import ProviderDescriptor

logger = get_logger(__name__)

CONFIG_FILENAME = "config.yaml"


def recursive_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Mappings present on both sides are merged recursively; any other value
    from ``override`` (scalars and lists alike) replaces the base value.
    Neither argument is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = recursive_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_document(path: Path) -> Dict[str, Any]:
    """Load one YAML mapping from disk.

    Raises:
        ConfigNotFound: If the file does not exist
        ConfigParseError: If the file is not valid YAML or not a mapping
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigNotFound(path)

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigParseError(path, str(exc)) from exc

    # Empty config files are allowed and contribute nothing
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(path, f"expected a mapping, got {type(data).__name__}")
    return data


class ConfigResolver:
    """Resolves the effective configuration of framework directories under a root."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def framework_dir(self, language: str, framework: str) -> Path:
        return self.root / language / framework

    def layer_paths(self, language: str, framework: str) -> List[Path]:
        """Return the three config files in merge order."""
        return [
            self.root / CONFIG_FILENAME,
            self.root / language / CONFIG_FILENAME,
            self.root / language / framework / CONFIG_FILENAME,
        ]

    def resolve(self, language: str, framework: str) -> Dict[str, Any]:
        """Load and merge the global, language and framework documents.

        Every call reads the files afresh, so callers may mutate the result.
        """
        paths = self.layer_paths(language, framework)
        # Load all layers first so a missing file never yields a partial merge
        documents = [load_document(path) for path in paths]

        config: Dict[str, Any] = {}
        for document in documents:
            config = recursive_merge(config, document)

        logger.debug(f"Resolved configuration for {language}/{framework}")
        return config

    def load_global(self) -> Dict[str, Any]:
        """Return the root config.yaml document."""
        return load_document(self.root / CONFIG_FILENAME)

    def provider(self, name: str) -> ProviderDescriptor:
        """Look up a provider in the global provider table.

        Raises:
            UnknownProvider: If no entry exists for ``name``
        """
        providers = self.load_global().get('providers') or {}
        if name not in providers:
            raise UnknownProvider(name, list(providers))
        return ProviderDescriptor.from_dict(name, providers[name] or {})

    def languages(self) -> List[str]:
        """Language directories holding a config.yaml, sorted."""
        return sorted(
            path.parent.name
            for path in self.root.glob(f"*/{CONFIG_FILENAME}")
        )

    def frameworks(self, language: str) -> List[str]:
        """Framework directories of ``language`` holding a config.yaml, sorted."""
        return sorted(
            path.parent.name
            for path in (self.root / language).glob(f"*/{CONFIG_FILENAME}")
        )

    def iter_matrix(self) -> Iterator[Tuple[str, str]]:
        """Yield every (language, framework) pair with a framework config."""
        for path in sorted(self.root.glob(f"*/*/{CONFIG_FILENAME}")):
            framework_dir = path.parent
            yield framework_dir.parent.name, framework_dir.name
