"""cloud-init user-data generation for a framework directory."""
import base64
import glob
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from benchmarker.config.loader import ConfigResolver
from benchmarker.core.errors import IOFailure
from benchmarker.core.logger import get_logger
from benchmarker.core.template_renderer import TemplateRenderer
from benchmarker.models.cloud import CloudConfig
from benchmarker.services.manifest import REMOTE_ROOT, local_name

logger = get_logger(__name__)

CLOUD_CONFIG_MARKER = "#cloud-config"
USER_DATA = "user_data.yml"

SERVICE_PATH = "/usr/lib/systemd/system/web.service"
ENVIRONMENT_PATH = "/etc/web"
FILE_PERMISSION = "0644"
BASE64_ENCODING = "b64"


def php_extension_commands(extension: str):
    return [
        f"pecl install {extension}",
        f"echo 'extension={extension}' > /etc/php.d/99-{extension}.ini",
    ]


class CloudConfigGenerator:
    """Builds the first-boot provisioning document of one framework."""

    def __init__(self, root: Path, resolver: Optional[ConfigResolver] = None,
                 renderer: Optional[TemplateRenderer] = None):
        self.root = Path(root)
        self.resolver = resolver or ConfigResolver(self.root)
        self.renderer = renderer or TemplateRenderer()

    def build(self, language: str, framework: str) -> CloudConfig:
        """Assemble the cloud configuration from the merged config."""
        config = self.resolver.resolve(language, framework)
        directory = self.resolver.framework_dir(language, framework)
        cloud = CloudConfig.from_dict((config.get('cloud') or {}).get('config') or {})

        if 'service' in config:
            cloud.add_file(SERVICE_PATH, self.renderer.render(config['service'], config), FILE_PERMISSION)

        environment = config.get('environment') or {}
        cloud.add_file(
            ENVIRONMENT_PATH,
            "".join(f"{key}={value}\n" for key, value in environment.items()),
            FILE_PERMISSION,
        )

        if 'deps' in config:
            cloud.add_packages(config['deps'] or [])

        # Provisioning order: before commands, existing commands, extensions, after commands
        cloud.runcmd = list(config.get('before_command') or []) + cloud.runcmd

        for extension in config.get('php_ext') or []:
            cloud.runcmd.extend(php_extension_commands(extension))

        cloud.runcmd.extend(config.get('after_command') or [])

        for pattern in config.get('files') or []:
            for path in sorted(glob.glob(os.path.join(str(directory), pattern), recursive=True)):
                if not os.path.isfile(path):
                    continue
                relative = os.path.relpath(path, str(directory))
                # Only shared files reached through ".." are renamed; dotfiles keep their name
                remote_path = local_name(relative) if relative.startswith("..") else relative
                try:
                    data = Path(path).read_bytes()
                except OSError as exc:
                    raise IOFailure(f"Failed to read {path}: {exc}") from exc
                try:
                    cloud.add_file(f"{REMOTE_ROOT}/{remote_path}", data.decode("utf-8"), FILE_PERMISSION)
                except UnicodeDecodeError:
                    logger.debug(f"Embedding binary file {relative} as base64")
                    cloud.add_file(
                        f"{REMOTE_ROOT}/{remote_path}",
                        base64.b64encode(data).decode("ascii"),
                        FILE_PERMISSION,
                        encoding=BASE64_ENCODING,
                    )

        return cloud

    def render(self, cloud: CloudConfig) -> str:
        document: Dict[str, Any] = cloud.to_dict()
        body = yaml.safe_dump(document, default_flow_style=False, sort_keys=False)
        return f"{CLOUD_CONFIG_MARKER}\n{body}"

    def generate(self, language: str, framework: str) -> Path:
        """Write ``user_data.yml`` into the framework directory."""
        cloud = self.build(language, framework)
        target = self.resolver.framework_dir(language, framework) / USER_DATA
        try:
            target.write_text(self.render(cloud))
        except OSError as exc:
            raise IOFailure(f"Failed to write {target}: {exc}") from exc

        logger.info(
            f"Generated cloud config for {language}/{framework}: "
            f"{len(cloud.write_files)} files, {len(cloud.runcmd)} commands"
        )
        return target
