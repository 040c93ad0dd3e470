"""Access to the local tailscale control plane through its CLI."""

import subprocess

from loguru import logger

TAILSCALE_CMD = "tailscale"
STATUS_TIMEOUT = 10.0


class TailscaleError(Exception):
    """Error getting status from the tailscale CLI"""


def get_status(command: str = TAILSCALE_CMD, timeout: float = STATUS_TIMEOUT) -> bytes:
    """
    Run ``<command> status --json`` and return its raw stdout.

    Parameters
    ----------
    command: str
        The tailscale CLI executable.
    timeout: float
        Seconds to wait for the command to exit. Zero or negative waits forever.

    Raises
    ------
    TailscaleError
        The command could not be started, timed out, or exited with a non-zero status.
    """

    args = [command, "status", "--json"]
    logger.debug(f"running {' '.join(args)}")

    try:
        result = subprocess.run(
            args,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout if timeout > 0 else None,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise TailscaleError(f"{command} status timed out after {timeout}s") from e
    except OSError as e:
        raise TailscaleError(f"failed to run {command}: {e}") from e

    if result.returncode != 0:
        stderr = result.stderr.decode(errors="replace").strip()
        msg = f"{command} status exited with code {result.returncode}"
        if stderr:
            msg += f": {stderr}"
        raise TailscaleError(msg)

    return result.stdout
