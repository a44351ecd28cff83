# winswitch/windows/base_backend.py
import abc
import asyncio
import logging
from typing import List, Tuple

from winswitch.utils.exceptions import ExternalToolError
from winswitch.windows.models import WindowRecord

logger = logging.getLogger(__name__)

class BaseWindowBackend(abc.ABC):
    """Abstract base class for window enumeration and focus implementations."""

    @abc.abstractmethod
    async def list_windows(self) -> List[WindowRecord]:
        """Get a list of all open windows in enumeration order.

        Returns:
            A list of WindowRecord, one per open window.

        Raises:
            ExternalToolError: If the enumeration command cannot run or fails.
            MalformedLineError: If the command output cannot be parsed.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def focus_by_title(self, title: str) -> None:
        """Raise and focus the window whose title matches ``title``.

        Raises:
            ExternalToolError: If the focus command cannot run or fails.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def focus_by_id(self, window_id: str) -> None:
        """Raise and focus the window with the given identity.

        Raises:
            ExternalToolError: If the focus command cannot run or fails.
        """
        raise NotImplementedError

    async def _run(self, *command: str) -> Tuple[str, str]:
        """Run an external command and return its decoded stdout and stderr."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            raise ExternalToolError(
                f"Failed to launch {command[0]}: {e}", command=list(command)
            ) from e

        out = stdout.decode(errors="replace") if stdout else ""
        err = stderr.decode(errors="replace") if stderr else ""
        if proc.returncode != 0:
            raise ExternalToolError(
                f"{' '.join(command)} exited with status {proc.returncode}: {err.strip()}",
                command=list(command),
                returncode=proc.returncode,
                stderr=err
            )
        logger.debug(f"Ran {' '.join(command)}")
        return out, err
