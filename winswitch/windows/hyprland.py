# winswitch/windows/hyprland.py
import json
import re
from typing import Any, List

from winswitch.utils.exceptions import MalformedLineError
from winswitch.utils.logging import get_logger
from winswitch.windows.base_backend import BaseWindowBackend
from winswitch.windows.models import WindowRecord

logger = get_logger(__name__)

def parse_hyprctl_clients(output: str) -> List[WindowRecord]:
    """Parse ``hyprctl clients -j`` output into window records.

    Unmapped and hidden clients are skipped since they can't be focused.
    """
    try:
        client_list = json.loads(output)
    except json.JSONDecodeError as e:
        raise MalformedLineError(f"hyprctl returned invalid JSON: {e}") from e

    if not isinstance(client_list, list):
        raise MalformedLineError("hyprctl clients output is not a list")

    windows: List[WindowRecord] = []
    for index, client in enumerate(client_list, start=1):
        if not isinstance(client, dict) or not client.get('address'):
            raise MalformedLineError(
                f"hyprctl client entry {index} has no address",
                line=json.dumps(client),
                line_number=index
            )
        if not client.get('mapped', True) or client.get('hidden', False):
            continue

        # Get workspace ID, handling both dictionary and direct integer cases
        workspace: Any = client.get('workspace', {})
        workspace_id = workspace.get('id') if isinstance(workspace, dict) else workspace

        windows.append(WindowRecord(
            id=client['address'],
            title=client.get('title', ''),
            desktop=str(workspace_id) if workspace_id is not None else None,
            host=client.get('class') or None
        ))
    return windows

class HyprlandBackend(BaseWindowBackend):
    """Window backend for Hyprland."""

    def __init__(self, command: str = "hyprctl") -> None:
        """Initialize Hyprland window interface."""
        self.command = command

    async def list_windows(self) -> List[WindowRecord]:
        stdout, _ = await self._run(self.command, "clients", "-j")
        windows = parse_hyprctl_clients(stdout)
        logger.debug(f"hyprctl listed {len(windows)} windows")
        return windows

    async def focus_by_title(self, title: str) -> None:
        await self._dispatch_focus(f"title:^({re.escape(title)})$")

    async def focus_by_id(self, window_id: str) -> None:
        await self._dispatch_focus(f"address:{window_id}")

    async def _dispatch_focus(self, selector: str) -> None:
        # hyprctl exits 0 even when the dispatcher fails and reports on stdout
        stdout, _ = await self._run(self.command, "dispatch", "focuswindow", selector)
        reply = stdout.strip()
        if reply and reply != "ok":
            logger.warning(f"hyprctl focuswindow {selector} replied: {reply}")
