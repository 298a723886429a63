"""CI pipeline document models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PipelineJob:
    name: str
    commands: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'commands': list(self.commands)}


@dataclass
class PipelineBlock:
    """A named stage holding parallel jobs."""
    name: str
    dependencies: List[str] = field(default_factory=list)
    jobs: List[PipelineJob] = field(default_factory=list)
    prologue: List[str] = field(default_factory=list)
    env_vars: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        task: Dict[str, Any] = {}
        if self.prologue:
            task['prologue'] = {'commands': list(self.prologue)}
        if self.env_vars:
            task['env_vars'] = [
                {'name': name, 'value': value} for name, value in self.env_vars.items()
            ]
        task['jobs'] = [job.to_dict() for job in self.jobs]
        return {
            'name': self.name,
            'dependencies': list(self.dependencies),
            'task': task,
        }


@dataclass
class Pipeline:
    name: str
    blocks: List[PipelineBlock] = field(default_factory=list)
    version: str = "v1.0"
    time_limit_hours: int = 3
    machine_type: str = "e1-standard-2"
    os_image: str = "ubuntu1804"

    def block(self, name: str) -> Optional[PipelineBlock]:
        for block in self.blocks:
            if block.name == name:
                return block
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'name': self.name,
            'execution_time_limit': {'hours': self.time_limit_hours},
            'agent': {'machine': {'type': self.machine_type, 'os_image': self.os_image}},
            'blocks': [block.to_dict() for block in self.blocks],
        }
