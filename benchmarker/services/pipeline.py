"""CI pipeline generation for the language/framework matrix."""
from pathlib import Path
from typing import List, Optional

import yaml

from benchmarker.config.loader import ConfigResolver
from benchmarker.core.errors import IOFailure
from benchmarker.core.logger import get_logger
from benchmarker.models.pipeline import Pipeline, PipelineBlock, PipelineJob
from benchmarker.services.manifest import BUILD_MANIFEST

logger = get_logger(__name__)

PIPELINE_NAME = "Benchmarking suite"
PIPELINE_FILE = Path(".semaphore") / "semaphore.yml"

SETUP_COMMANDS = [
    'checkout',
    'cache store $SEMAPHORE_GIT_SHA .',
    'sudo snap install crystal --classic',
    'sudo apt-get -y install libyaml-dev libevent-dev',
    'shards build --static',
    'cache store bin bin',
    'bundle config path .cache',
    'bundle install',
    'cache store built-in .cache',
    'bundle exec rake config',
]

LANGUAGE_PROLOGUE = [
    'cache restore $SEMAPHORE_GIT_SHA',
    'cache restore bin',
    'cache restore built-in',
    'find bin -type f -exec chmod +x {} \\;',
    'bundle config path .cache',
    'bundle install',
    'bundle exec rake config',
]

# Jobs only check that every framework builds and answers
LANGUAGE_ENV = {'CLEAN': 'off', 'COLLECT': 'off'}


def framework_commands(language: str, framework: str) -> List[str]:
    return [
        f"cd {language}/{framework} && make build  -f {BUILD_MANIFEST}  && cd -",
        f"FRAMEWORK={language}/{framework} bundle exec rspec .spec",
    ]


class PipelineConfigGenerator:
    """Emits one CI block per language with one job per framework."""

    def __init__(self, root: Path, resolver: Optional[ConfigResolver] = None):
        self.root = Path(root)
        self.resolver = resolver or ConfigResolver(self.root)

    def build(self) -> Pipeline:
        pipeline = Pipeline(name=PIPELINE_NAME)
        pipeline.blocks.append(PipelineBlock(
            name='setup',
            jobs=[PipelineJob(name='setup', commands=list(SETUP_COMMANDS))],
        ))

        for language in self.resolver.languages():
            block = PipelineBlock(
                name=language,
                dependencies=['setup'],
                prologue=list(LANGUAGE_PROLOGUE),
                env_vars=dict(LANGUAGE_ENV),
            )
            for framework in self.resolver.frameworks(language):
                block.jobs.append(PipelineJob(
                    name=framework,
                    commands=framework_commands(language, framework),
                ))
            pipeline.blocks.append(block)

        return pipeline

    def generate(self, target: Optional[Path] = None) -> Path:
        """Write the pipeline file, ``.semaphore/semaphore.yml`` by default."""
        pipeline = self.build()
        target = Path(target) if target else self.root / PIPELINE_FILE
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'w') as f:
                yaml.safe_dump(pipeline.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as exc:
            raise IOFailure(f"Failed to write {target}: {exc}") from exc

        jobs = sum(len(block.jobs) for block in pipeline.blocks[1:])
        logger.info(f"Generated {target} ({len(pipeline.blocks) - 1} languages, {jobs} jobs)")
        return target
