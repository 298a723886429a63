"""Binary upload and boot readiness polling for provisioned hosts."""
import glob
import os
import time
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Tuple

from benchmarker.config.loader import ConfigResolver
from benchmarker.core.errors import ConnectionUnavailable, ProvisioningFailed, ProvisioningTimeout
from benchmarker.core.logger import get_logger
from benchmarker.services.manifest import REMOTE_ROOT
from benchmarker.services.remote.ssh import SSHClient, SSHSession

logger = get_logger(__name__)

BOOT_STATUS_COMMAND = "cloud-init status"
POLL_INTERVAL = 5


def parse_boot_status(output: str) -> str:
    """Extract the value of ``status: <value>`` output."""
    _, sep, status = output.partition(":")
    lines = status.strip().splitlines()
    if not sep or not lines:
        return ""
    return lines[0].strip()


def wait_until_ready(
    connect: Callable[[], SSHSession],
    interval: float = POLL_INTERVAL,
    timeout: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Block until the host reports a finished boot.

    Connection attempts are retried while the host refuses or is
    unreachable, then the boot status is polled. With ``timeout=None``
    both loops are unbounded.

    Returns:
        Number of status polls performed

    Raises:
        ProvisioningFailed: If the boot status reports an error
        ProvisioningTimeout: If ``timeout`` elapses first
    """
    deadline = None if timeout is None else clock() + timeout

    def pause() -> None:
        if deadline is not None and clock() + interval > deadline:
            raise ProvisioningTimeout(f"Host not ready after {timeout}s")
        sleep(interval)

    while True:
        logger.info("Trying to connect")
        try:
            session = connect()
        except ConnectionUnavailable as exc:
            logger.debug(f"Host unavailable: {exc}")
            pause()
            continue
        break

    polls = 0
    try:
        while True:
            polls += 1
            status = parse_boot_status(session.exec(BOOT_STATUS_COMMAND))
            if status == "error":
                raise ProvisioningFailed("cloud-init has failed")
            if status == "done":
                logger.info("cloud-init has finished")
                return polls

            logger.info(f"cloud-init is still running ({status or 'unknown'})")
            pause()
    finally:
        session.close()


class RemoteDeployer:
    """Pushes compiled binaries to a host and waits for it to boot."""

    def __init__(self, root: Path, client: SSHClient, resolver: Optional[ConfigResolver] = None):
        self.root = Path(root)
        self.client = client
        self.resolver = resolver or ConfigResolver(self.root)

    def binaries(self, language: str, framework: str) -> List[Tuple[str, str]]:
        """Return (local path, remote directory) for every declared binary."""
        config = self.resolver.resolve(language, framework)
        directory = self.resolver.framework_dir(language, framework)

        targets: List[Tuple[str, str]] = []
        for pattern in config.get('binaries') or []:
            for binary in sorted(glob.glob(os.path.join(str(directory), pattern))):
                relative_parent = Path(os.path.relpath(binary, str(directory))).parent
                remote_directory = PurePosixPath(REMOTE_ROOT, *relative_parent.parts)
                targets.append((binary, str(remote_directory)))
        return targets

    def upload(self, language: str, framework: str) -> List[Tuple[str, str]]:
        """Create remote directories, then copy every binary.

        Directory creation and copying use separate sessions; a failed copy
        does not undo the directories already created.
        """
        targets = self.binaries(language, framework)
        if not targets:
            logger.info(f"No binaries to upload for {language}/{framework}")
            return []

        with self.client.session() as ssh:
            for remote_directory in dict.fromkeys(remote for _, remote in targets):
                logger.info(f"Creating {remote_directory}")
                ssh.exec(f"mkdir -p {remote_directory}", check=True)

        with self.client.copy_session() as scp:
            for binary, remote_directory in targets:
                logger.info(f"Uploading {binary} to {remote_directory}")
                scp.upload(binary, remote_directory)

        return targets

    def wait(self, interval: float = POLL_INTERVAL, timeout: Optional[float] = None,
             sleep: Callable[[float], None] = time.sleep) -> int:
        return wait_until_ready(self.client.session, interval=interval, timeout=timeout, sleep=sleep)
