"""cloud-init user-data models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class WriteFile:
    """One ``write_files`` entry."""
    path: str
    content: str
    permission: str = "0644"
    encoding: Optional[str] = None  # "b64" for binary content

    def to_dict(self) -> Dict[str, str]:
        entry = {
            'path': self.path,
            'permission': self.permission,
            'content': self.content,
        }
        if self.encoding:
            entry['encoding'] = self.encoding
        return entry


@dataclass
class CloudConfig:
    """First-boot provisioning document.

    Records are only ever appended; their order is the provisioning order.
    Keys other than packages/write_files/runcmd are carried through untouched.
    """
    packages: List[str] = field(default_factory=list)
    write_files: List[WriteFile] = field(default_factory=list)
    runcmd: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CloudConfig":
        data = dict(data or {})
        packages = list(data.pop('packages', None) or [])
        runcmd = list(data.pop('runcmd', None) or [])
        # Pre-existing write_files are replaced by the generated ones
        data.pop('write_files', None)
        return cls(packages=packages, runcmd=runcmd, extra=data)

    def add_file(self, path: str, content: str, permission: str = "0644",
                 encoding: Optional[str] = None) -> None:
        self.write_files.append(
            WriteFile(path=path, content=content, permission=permission, encoding=encoding)
        )

    def add_packages(self, packages: List[str]) -> None:
        for package in packages:
            if package not in self.packages:
                self.packages.append(package)

    def to_dict(self) -> Dict[str, Any]:
        document: Dict[str, Any] = dict(self.extra)
        if self.packages:
            document['packages'] = list(self.packages)
        document['write_files'] = [entry.to_dict() for entry in self.write_files]
        if self.runcmd:
            document['runcmd'] = list(self.runcmd)
        return document
