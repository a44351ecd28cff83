"""Session controller for the window switcher.

This module provides the SessionController class, which handles the host UI
lifecycle (enter, search, select and the show/hide hooks) and keeps the
rendered list consistent while window enumeration, focus commands and the
post-activation refresh complete asynchronously.

Core features:
- Usage-ranked listing and case-insensitive title filtering
- Usage recording and focus on selection
- Deferred refresh after focus, owned and cancellable by the controller
- Stale result discarding by session epoch and request sequence
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Union

from winswitch.session.session import RenderCallback, Session, SessionState, maybe_await
from winswitch.usage.ranker import Ranker
from winswitch.usage.store import UsageStore
from winswitch.utils.config import get_config
from winswitch.utils.exceptions import (
    AmbiguousTitleError, ExternalToolError, ParsingError, StoreError
)
from winswitch.utils.logging import get_logger
from winswitch.windows.base_backend import BaseWindowBackend
from winswitch.windows.models import WindowRecord

logger = get_logger(__name__)

SelectedItem = Union[str, Dict[str, Any]]

def filter_windows(windows: Sequence[WindowRecord], query: str) -> List[WindowRecord]:
    """Keep windows whose title contains ``query``, ignoring case."""
    needle = query.lower()
    return [window for window in windows if needle in window.title.lower()]

class SessionController:
    """Owns the current switcher session and drives list/search/select."""

    def __init__(self, backend: BaseWindowBackend, usage_store: UsageStore,
                 ranker: Optional[Ranker] = None, hide_callback=None,
                 refresh_delay: float = 0.5, enter_refresh_delay: float = 0.1):
        """Initialize the controller.

        Args:
            backend: Window enumeration and focus backend
            usage_store: Usage records, updated on selection
            ranker: Ranker over usage_store (created when omitted)
            hide_callback: Host hook that hides the switcher UI
            refresh_delay: Seconds to wait after focusing before re-listing
            enter_refresh_delay: Seconds to wait before re-listing when the UI is shown again
        """
        self.backend = backend
        self.usage_store = usage_store
        self.ranker = ranker or Ranker(usage_store)
        self.hide_callback = hide_callback
        self.refresh_delay = refresh_delay
        self.enter_refresh_delay = enter_refresh_delay

        self.session: Optional[Session] = None
        self.state = SessionState.IDLE
        self._epoch = 0
        self._request_seq = 0
        self._refresh_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], backend: BaseWindowBackend,
                    usage_store: UsageStore, hide_callback=None) -> 'SessionController':
        return cls(
            backend,
            usage_store,
            hide_callback=hide_callback,
            refresh_delay=float(get_config(config, "session.refresh_delay", 0.5)),
            enter_refresh_delay=float(get_config(config, "session.enter_refresh_delay", 0.1))
        )

    @property
    def epoch(self) -> int:
        return self._epoch

    # Host entry points

    async def enter(self, render_callback: RenderCallback, action: Any = None) -> None:
        """Start a new session and render the ranked window list."""
        session = self._begin_session(render_callback, action)
        self.state = SessionState.LISTING
        await self._render_listing(session)

    async def search(self, query: str, render_callback: RenderCallback) -> None:
        """Re-list, re-rank and render the windows whose title matches ``query``."""
        session = self.session
        if session is None or session.render_callback != render_callback:
            session = self._begin_session(render_callback, session.action if session else None)
        self.state = SessionState.FILTERING if query else SessionState.LISTING
        await self._render_listing(session, query=query)

    async def select(self, selected_item: SelectedItem) -> Optional[WindowRecord]:
        """Focus the selected window and record its usage.

        ``selected_item`` is a rendered item (``{"title", "window_id"}``) or
        a bare title. Usage is recorded only when the item resolves to a live
        window; the focus command is issued either way.

        Returns:
            The live window the item resolved to, or None

        Raises:
            ExternalToolError, ParsingError: If the window list can't be fetched
        """
        if isinstance(selected_item, str):
            title, window_id = selected_item, None
        else:
            title = selected_item.get("title", "")
            window_id = selected_item.get("window_id")
        title = title.strip()

        self.state = SessionState.ACTIVATING
        self._cancel_refresh()
        if self.hide_callback is not None:
            await maybe_await(self.hide_callback())

        try:
            windows = await self.backend.list_windows()
        except (ExternalToolError, ParsingError):
            self.state = SessionState.LISTING if self.session else SessionState.IDLE
            raise

        window = self._resolve(windows, title, window_id)
        if window is not None:
            try:
                await self.usage_store.record_usage(window.id, window.title)
            except Exception as e:
                logger.warning(f"Failed to record usage of {window.id}: {e}")

        try:
            if window is not None and window.id == window_id:
                await self.backend.focus_by_id(window.id)
            else:
                await self.backend.focus_by_title(title)
        except ExternalToolError as e:
            logger.error(f"Failed to focus {title!r}: {e}")

        if self.session is not None:
            self._schedule_refresh(self.refresh_delay)
        else:
            self.state = SessionState.IDLE
        return window

    def on_plugin_enter(self) -> None:
        """Host showed the switcher again; refresh the existing session."""
        if self.session is not None:
            self._schedule_refresh(self.enter_refresh_delay)

    def on_plugin_out(self, is_kill: bool = False) -> None:
        """Host hid the switcher, or killed it when ``is_kill``."""
        if is_kill:
            self.end_session()
        elif self.session is not None:
            self._schedule_refresh(self.refresh_delay)

    def end_session(self) -> None:
        """Drop the current session; late results from it are discarded."""
        self._cancel_refresh()
        if self.session is not None:
            logger.debug(f"Ending session {self.session.session_id}")
        self.session = None
        self._epoch += 1
        self.state = SessionState.IDLE

    async def wait_for_refresh(self) -> None:
        """Wait until the pending deferred refresh, if any, has finished."""
        task = self._refresh_task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def cleanup(self) -> None:
        """Cancel the pending refresh."""
        task = self._refresh_task
        self._cancel_refresh()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    # Internals

    def _begin_session(self, render_callback: RenderCallback, action: Any) -> Session:
        self._cancel_refresh()
        self._epoch += 1
        self.session = Session(epoch=self._epoch, render_callback=render_callback, action=action)
        logger.debug(f"Started session {self.session.session_id} (epoch {self._epoch}) "
                     f"at {self.session.started_at.isoformat()}")
        return self.session

    def _next_request(self) -> int:
        self._request_seq += 1
        return self._request_seq

    def _is_current(self, session: Session, request: int) -> bool:
        return (
            self.session is session
            and session.epoch == self._epoch
            and request == self._request_seq
        )

    async def _render_listing(self, session: Session, query: Optional[str] = None) -> bool:
        """Fetch, rank, optionally filter and render through the session.

        Returns:
            False when the result was discarded as stale

        Raises:
            ExternalToolError, ParsingError, StoreError: After rendering an
                empty list so no stale list stays on screen
        """
        request = self._next_request()
        try:
            windows = await self.backend.list_windows()
            ranked = await self.ranker.rank(windows)
        except (ExternalToolError, ParsingError, StoreError):
            if self._is_current(session, request):
                await session.render([])
            raise

        if query:
            ranked = filter_windows(ranked, query)

        if not self._is_current(session, request):
            logger.debug(f"Discarding stale window list (request {request}, epoch {session.epoch})")
            return False

        await session.render([window.to_item() for window in ranked])
        return True

    def _resolve(self, windows: Sequence[WindowRecord], title: str,
                 window_id: Optional[str]) -> Optional[WindowRecord]:
        if window_id is not None:
            for window in windows:
                if window.id == window_id:
                    return window
            logger.info(f"Window {window_id} is gone, looking it up by title")

        matches = [window for window in windows if window.title == title]
        if len(matches) > 1:
            logger.warning(str(AmbiguousTitleError(title, [window.id for window in matches])))
        return matches[0] if matches else None

    def _schedule_refresh(self, delay: float) -> None:
        self._cancel_refresh()
        self._refresh_task = asyncio.create_task(self._deferred_refresh(self.session, delay))

    def _cancel_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()

    async def _deferred_refresh(self, session: Session, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            if self.session is not session:
                return
            if await self._render_listing(session):
                self.state = SessionState.LISTING
                logger.debug(f"Refreshed window list for session {session.session_id}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to refresh window list: {e}", exc_info=True)
