"""Container manifest and build-command generation for framework directories."""
import copy
import glob
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from benchmarker.config.loader import ConfigResolver
from benchmarker.core.errors import (
    ConfigNotFound,
    ConfigParseError,
    IOFailure,
    TemplateNotFound,
    TemplateSyntaxError,
)
from benchmarker.core.logger import get_logger
from benchmarker.core.template_renderer import TemplateRenderer
from benchmarker.models.provider import ProviderDescriptor, is_container_engine

logger = get_logger(__name__)

CONTAINER_MANIFEST = ".Dockerfile"
BUILD_MANIFEST = ".Makefile"

REMOTE_ROOT = "/opt/web"
REBOOT_PAUSE = "sleep 30"
HEALTH_CHECK = (
    "curl --retry 5 --retry-delay 5 --retry-max-time 180 --retry-connrefused "
    "http://`cat ip.txt`:3000 -v"
)


@dataclass
class ManifestResult:
    """Artifacts generated for one framework directory."""
    language: str
    framework: str
    container_manifest: Optional[Path]
    build_file: Path
    commands: List[str] = field(default_factory=list)

    @property
    def container_manifest_written(self) -> bool:
        return self.container_manifest is not None


@dataclass
class MatrixReport:
    """Outcome of generating manifests for every framework directory."""
    results: List[ManifestResult] = field(default_factory=list)
    failures: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def local_name(relative: str) -> str:
    """Map a path reaching outside the framework directory to a local one.

    ``../.shared/app.cr`` becomes ``shared/app.cr``.
    """
    parts = Path(relative).parts
    while parts and parts[0] == "..":
        parts = parts[1:]
    if parts and parts[0].startswith(".") and parts[0] not in (".", ".."):
        parts = (parts[0][1:],) + parts[1:]
    return str(Path(*parts)) if parts else ""


def is_outside(path: str, directory: Path) -> bool:
    resolved = Path(path).resolve()
    try:
        resolved.relative_to(directory.resolve())
    except ValueError:
        return True
    return False


def expand_patterns(directory: Path, patterns: List[str]) -> List[str]:
    """Expand glob patterns relative to ``directory``.

    Matches outside ``directory`` are copied inward first. Returns paths
    relative to ``directory``.
    """
    directory = Path(directory)
    files: List[str] = []
    for pattern in patterns:
        for match in sorted(glob.glob(os.path.join(str(directory), pattern), recursive=True)):
            relative = os.path.relpath(match, str(directory))
            if not is_outside(match, directory):
                files.append(relative)
                continue

            filename = local_name(relative)
            target = directory / filename
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                if os.path.isdir(match):
                    shutil.copytree(match, target, dirs_exist_ok=True)
                else:
                    shutil.copyfile(match, target)
            except OSError as exc:
                raise IOFailure(f"Failed to copy {match} into {directory}: {exc}") from exc
            logger.debug(f"Copied shared file {relative} to {filename}")
            files.append(filename)
    return files


class ManifestGenerator:
    """Writes the container manifest and build-command file of each framework."""

    def __init__(self, root: Path, resolver: Optional[ConfigResolver] = None,
                 renderer: Optional[TemplateRenderer] = None):
        self.root = Path(root)
        self.resolver = resolver or ConfigResolver(self.root)
        self.renderer = renderer or TemplateRenderer()

    def template_for(self, language: str, provider: str, config: Mapping[str, Any]) -> Optional[Path]:
        """Pick the container template, or None when no manifest is needed."""
        if is_container_engine(provider):
            return self.root / language / "Dockerfile"
        if 'binaries' in config:
            return self.root / language / ".build" / provider / "Dockerfile"
        return None

    def create_container_manifest(self, language: str, framework: str, provider: str,
                                  config: Dict[str, Any]) -> Optional[Path]:
        """Render and write the container manifest.

        Returns:
            Path written, or None when the framework needs no manifest
        """
        directory = self.resolver.framework_dir(language, framework)
        config = copy.deepcopy(config)

        for key in ('sources', 'files'):
            if key in config:
                config[key] = expand_patterns(directory, config[key] or [])

        template = self.template_for(language, provider, config)
        if template is None:
            logger.info(f"No container manifest needed for {language}/{framework} on {provider}")
            return None

        if 'environment' in config:
            config['environment'] = [
                f"{key} {value}" for key, value in (config['environment'] or {}).items()
            ]

        content = self.renderer.render_file(template, config)
        target = directory / CONTAINER_MANIFEST
        try:
            target.write_text(content)
        except OSError as exc:
            raise IOFailure(f"Failed to write {target}: {exc}") from exc
        return target

    def build_commands(self, language: str, framework: str, provider: ProviderDescriptor,
                       config: Mapping[str, Any], options: Mapping[str, Any]) -> List[str]:
        """Assemble the ordered deployment commands of one framework."""
        directory = self.resolver.framework_dir(language, framework)
        options = dict(options)
        options['language'] = language
        options['framework'] = framework
        commands: List[str] = []

        # Compile in a disposable container first, only for non container providers
        if 'binaries' in config and not provider.is_container_engine:
            tag = f"{language}.{framework}"
            commands.append(f"docker build -f {CONTAINER_MANIFEST} -t {tag} .")
            commands.append(f"docker run -td {tag} > cid.txt")
            for out in config['binaries'] or []:
                parent = os.path.dirname(out)
                if parent:
                    try:
                        (directory / parent).mkdir(parents=True, exist_ok=True)
                    except OSError as exc:
                        raise IOFailure(f"Failed to create {directory / parent}: {exc}") from exc
                    commands.append(f"docker cp `cat cid.txt`:{REMOTE_ROOT}/{parent} .")
                else:
                    commands.append(f"docker cp `cat cid.txt`:{REMOTE_ROOT}/{out} {out}")

        options['manifest'] = CONTAINER_MANIFEST
        commands.extend(self.renderer.render(cmd, options) for cmd in provider.build)
        commands.extend(self.renderer.render(cmd, options) for cmd in provider.metadata)

        if 'bootstrap' in config and provider.exec is not None:
            for cmd in config['bootstrap'] or []:
                commands.append(self.renderer.render(provider.exec, dict(options, command=cmd)))

        if provider.reboot:
            commands.extend(provider.reboot)
            commands.append(REBOOT_PAUSE)

        commands.append(HEALTH_CHECK)

        if options.get('collect') != 'off':
            commands.append(
                f"DATABASE_URL={options.get('DATABASE_URL', '')} ../../bin/client "
                f"--language {language} --framework {framework} "
                f"{options.get('sieger_options', '')} -h `cat ip.txt`"
            )

        if options.get('clean') != 'off':
            commands.extend(self.renderer.render(cmd, options) for cmd in provider.clean)

        return commands

    def write_build_file(self, path: Path, commands: List[str]) -> None:
        lines = ["build:\n"] + [f"\t {command}\n" for command in commands]
        try:
            Path(path).write_text("".join(lines))
        except OSError as exc:
            raise IOFailure(f"Failed to write {path}: {exc}") from exc

    def generate(self, language: str, framework: str, provider: str,
                 options: Mapping[str, Any]) -> ManifestResult:
        """Generate both manifests of one framework directory.

        Raises:
            UnknownProvider: If ``provider`` has no entry in the provider table
            ConfigNotFound, ConfigParseError: If a config layer is missing or invalid
            TemplateNotFound, TemplateSyntaxError: If the container template is missing or malformed
            IOFailure: If copying shared files or writing outputs fails
        """
        descriptor = self.resolver.provider(provider)
        config = self.resolver.resolve(language, framework)

        manifest = self.create_container_manifest(language, framework, provider, config)
        commands = self.build_commands(
            language, framework, descriptor, config, dict(options, provider=provider)
        )

        build_file = self.resolver.framework_dir(language, framework) / BUILD_MANIFEST
        self.write_build_file(build_file, commands)
        logger.info(f"Generated manifests for {language}/{framework} ({len(commands)} commands)")

        return ManifestResult(
            language=language,
            framework=framework,
            container_manifest=manifest,
            build_file=build_file,
            commands=commands,
        )

    def generate_all(self, provider: str, options: Mapping[str, Any]) -> MatrixReport:
        """Generate manifests for every framework directory.

        A broken framework is reported and skipped; an unknown provider
        aborts the whole run.
        """
        self.resolver.provider(provider)
        report = MatrixReport()

        for language, framework in self.resolver.iter_matrix():
            try:
                report.results.append(self.generate(language, framework, provider, options))
            except (ConfigNotFound, ConfigParseError, TemplateNotFound, TemplateSyntaxError) as exc:
                logger.warning(f"Skipping {language}/{framework}: {exc}")
                report.failures[f"{language}/{framework}"] = exc

        return report
