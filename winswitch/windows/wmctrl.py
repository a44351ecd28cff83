"""wmctrl window backend.

Enumerates windows with ``wmctrl -l`` and focuses them with ``wmctrl -a``
(by title) or ``wmctrl -i -a`` (by id). ``wmctrl -l`` prints one line per
window::

    0x03e00003  0 myhost Terminal - ~/src

that is: hex id, desktop index, client host, then the title as the rest of
the line.
"""

import re
from typing import List

from winswitch.utils.exceptions import MalformedLineError
from winswitch.utils.logging import get_logger
from winswitch.windows.base_backend import BaseWindowBackend
from winswitch.windows.models import WindowRecord

logger = get_logger(__name__)

WMCTRL_LINE_REGEX = re.compile(r'^(0x\S*)\s+(\S+)\s+(\S+)\s*(.*)$')

def parse_wmctrl_output(output: str, skip_malformed: bool = False) -> List[WindowRecord]:
    """Parse ``wmctrl -l`` output into window records.

    Args:
        output: Raw command output
        skip_malformed: Log and drop lines that don't parse instead of failing

    Returns:
        One WindowRecord per non-empty line, in input order

    Raises:
        MalformedLineError: If a line doesn't parse and skip_malformed is False
    """
    windows: List[WindowRecord] = []
    for line_number, line in enumerate(re.split(r'\r?\n', output), start=1):
        if not line.strip():
            continue

        match = WMCTRL_LINE_REGEX.match(line)
        if not match:
            if skip_malformed:
                logger.warning(f"Skipping malformed wmctrl line {line_number}: {line!r}")
                continue
            raise MalformedLineError(
                f"Unexpected wmctrl output on line {line_number}: {line!r}",
                line=line,
                line_number=line_number
            )

        window_id, desktop, host, title = match.groups()
        windows.append(WindowRecord(id=window_id, title=title, desktop=desktop, host=host))

    return windows

class WmctrlBackend(BaseWindowBackend):
    """Window backend for EWMH-compliant X11 window managers."""

    def __init__(self, command: str = "wmctrl", skip_malformed_lines: bool = False) -> None:
        self.command = command
        self.skip_malformed_lines = skip_malformed_lines

    async def list_windows(self) -> List[WindowRecord]:
        stdout, _ = await self._run(self.command, "-l")
        windows = parse_wmctrl_output(stdout, skip_malformed=self.skip_malformed_lines)
        logger.debug(f"wmctrl listed {len(windows)} windows")
        return windows

    async def focus_by_title(self, title: str) -> None:
        await self._run(self.command, "-a", title)

    async def focus_by_id(self, window_id: str) -> None:
        await self._run(self.command, "-i", "-a", window_id)
