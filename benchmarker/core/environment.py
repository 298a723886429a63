"""Process environment snapshot and option bag assembly.

Environment variables are read once per invocation, layered with the
``.env/<ENV>`` and ``.env/default`` files found under the benchmark root.
Explicit options always win over anything taken from the environment.
"""
import os
import sys
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from benchmarker.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_ENVIRONMENT = "development"
DEFAULT_SIEGER_OPTIONS = "-r GET:/ -c 10"


def _read_env_file(path: Path) -> Dict[str, str]:
    """Read a dotenv file, dropping keys declared without a value."""
    if not path.is_file():
        return {}
    values = dotenv_values(path)
    return {key: value for key, value in values.items() if value is not None}


def load_environment(root: Path, environ: Optional[Mapping[str, str]] = None) -> Mapping[str, str]:
    """Return an immutable snapshot of the environment for one invocation.

    Precedence (highest first): process variables, ``.env/<ENV>``,
    ``.env/default``.
    """
    process_env = dict(os.environ if environ is None else environ)
    environment = process_env.get("ENV", DEFAULT_ENVIRONMENT)

    env_dir = Path(root) / ".env"
    merged: Dict[str, str] = {}
    merged.update(_read_env_file(env_dir / "default"))
    merged.update(_read_env_file(env_dir / environment))
    merged.update(process_env)

    logger.debug(f"Environment '{environment}' loaded with {len(merged)} variables")
    return MappingProxyType(merged)


def default_provider(platform: Optional[str] = None) -> str:
    """Pick the container engine available on this host."""
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return "docker"
    return "docker-machine"


def build_options(explicit: Mapping[str, Any], snapshot: Mapping[str, str]) -> Dict[str, Any]:
    """Widen explicit options with every environment variable not already set."""
    options = dict(explicit)
    for key, value in snapshot.items():
        options.setdefault(key, value)
    return options
