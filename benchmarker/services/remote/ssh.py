"""SSH and SCP sessions driven through the system OpenSSH clients."""
import subprocess
from typing import Callable, List, Optional

from benchmarker.core.errors import ConnectionUnavailable, IOFailure
from benchmarker.core.logger import get_logger

logger = get_logger(__name__)

SSH_OPTIONS = [
    "-o", "BatchMode=yes",
    "-o", "StrictHostKeyChecking=no",
    "-o", "UserKnownHostsFile=/dev/null",
    "-o", "LogLevel=ERROR",
]

# OpenSSH exits with 255 on connection errors; these mean "try again later"
UNREACHABLE_MARKERS = (
    "Connection refused",
    "No route to host",
    "Network is unreachable",
    "Connection timed out",
)

Runner = Callable[..., subprocess.CompletedProcess]


def _check_transport(result: subprocess.CompletedProcess, action: str) -> None:
    """Raise when ssh/scp itself failed (exit 255), not the remote command."""
    if result.returncode != 255:
        return

    stderr = (result.stderr or "").strip()
    if any(marker in stderr for marker in UNREACHABLE_MARKERS):
        raise ConnectionUnavailable(f"{action}: {stderr}")
    raise IOFailure(f"{action} failed (exit 255): {stderr}")


def _check(result: subprocess.CompletedProcess, action: str) -> str:
    _check_transport(result, action)
    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise IOFailure(f"{action} failed (exit {result.returncode}): {stderr}")
    return result.stdout


class SSHClient:
    """Connection parameters for one remote host."""

    def __init__(self, host: str, key_file: Optional[str] = None, user: str = "root",
                 runner: Runner = subprocess.run):
        self.host = host
        self.key_file = key_file
        self.user = user
        self.runner = runner

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}"

    def base_args(self) -> List[str]:
        args = list(SSH_OPTIONS)
        if self.key_file:
            args += ["-i", self.key_file]
        return args

    def session(self) -> "SSHSession":
        """Open a command-execution session.

        Raises:
            ConnectionUnavailable: If the host refuses or cannot be reached
        """
        session = SSHSession(self)
        session.open()
        return session

    def copy_session(self) -> "SCPSession":
        return SCPSession(self)


class SSHSession:
    """Command-execution session; one remote command in, its output out."""

    def __init__(self, client: SSHClient):
        self.client = client
        self.closed = False
        self.exit_status: Optional[int] = None

    def open(self) -> None:
        self.exec("true", check=True)

    def exec(self, command: str, check: bool = False) -> str:
        """Run ``command`` remotely and return its combined stdout and stderr.

        The remote exit status is kept in ``exit_status`` and only raised
        on when ``check`` is set; ssh transport failures always raise.
        """
        if self.closed:
            raise IOFailure(f"Session to {self.client.host} is closed")
        args = ["ssh", *self.client.base_args(), self.client.target, command]
        action = f"ssh {self.client.target} '{command}'"
        logger.debug(f"ssh {self.client.target}: {command}")
        result = self.client.runner(args, capture_output=True, text=True)

        if check:
            output = _check(result, action)
        else:
            _check_transport(result, action)
            output = result.stdout or ""
        self.exit_status = result.returncode
        return output + (result.stderr or "")

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class SCPSession:
    """Recursive file-copy session."""

    def __init__(self, client: SSHClient):
        self.client = client

    def upload(self, local_path: str, remote_path: str) -> None:
        args = ["scp", "-r", *self.client.base_args(), local_path,
                f"{self.client.target}:{remote_path}"]
        result = self.client.runner(args, capture_output=True, text=True)
        _check(result, f"scp {local_path} -> {self.client.host}:{remote_path}")

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
