"""Deployment provider models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CONTAINER_ENGINE_PREFIXES = ("docker", "podman")


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


@dataclass
class ProviderDescriptor:
    """Command templates of one deployment target, by phase."""
    name: str
    build: List[str] = field(default_factory=list)
    metadata: List[str] = field(default_factory=list)
    exec: Optional[str] = None  # Wraps one remote command, bound as {{command}}
    reboot: List[str] = field(default_factory=list)
    clean: List[str] = field(default_factory=list)

    @property
    def is_container_engine(self) -> bool:
        return is_container_engine(self.name)

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "ProviderDescriptor":
        exec_template = data.get('exec')
        return cls(
            name=name,
            build=_as_list(data.get('build')),
            metadata=_as_list(data.get('metadata')),
            exec=str(exec_template) if exec_template is not None else None,
            reboot=_as_list(data.get('reboot')),
            clean=_as_list(data.get('clean')),
        )


def is_container_engine(provider: str) -> bool:
    """Return True for docker/podman style providers."""
    return provider.startswith(CONTAINER_ENGINE_PREFIXES)
