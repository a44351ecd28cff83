from typing import Dict, List, Sequence, Tuple

from winswitch.usage.store import UsageStore
from winswitch.windows.models import WindowRecord

class Ranker:
    """Orders windows by how often and how recently they were selected."""

    def __init__(self, usage_store: UsageStore):
        self.usage_store = usage_store

    async def rank(self, windows: Sequence[WindowRecord]) -> List[WindowRecord]:
        """Sort windows by descending count, then descending last use.

        Usage is read fresh on every call. Windows without a record rank as
        count 0, last used 0. The sort is stable, so windows with equal usage
        keep their enumeration order. ``windows`` is not modified.
        """
        usage: Dict[str, Tuple[int, int]] = {
            record.window_id: (record.count, record.last_used)
            for record in await self.usage_store.all_records()
        }

        def sort_key(window: WindowRecord) -> Tuple[int, int]:
            count, last_used = usage.get(window.id, (0, 0))
            return (-count, -last_used)

        return sorted(windows, key=sort_key)
