"""Remote host access and deployment."""
from benchmarker.services.remote.deployer import RemoteDeployer, wait_until_ready
from benchmarker.services.remote.ssh import SSHClient, SSHSession

__all__ = ['RemoteDeployer', 'SSHClient', 'SSHSession', 'wait_until_ready']
