"""Switcher session state.

A Session is one activation of the switcher UI: the render callback the host
handed to ``enter`` plus the epoch that tells its async results apart from
those of earlier sessions.
"""

import inspect
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

RenderItems = List[Dict[str, str]]
RenderCallback = Callable[[RenderItems], Any]

class SessionState(Enum):
    IDLE = "idle"
    LISTING = "listing"
    FILTERING = "filtering"
    ACTIVATING = "activating"

async def maybe_await(result: Any) -> Any:
    """Await ``result`` if a host callback returned an awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result

@dataclass
class Session:
    epoch: int
    render_callback: RenderCallback
    action: Optional[Any] = None
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=datetime.now)

    async def render(self, items: RenderItems) -> None:
        await maybe_await(self.render_callback(items))
