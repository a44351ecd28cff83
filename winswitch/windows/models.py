from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class WindowRecord:
    """One window from a single enumeration snapshot.

    ``id`` is unique within the snapshot; ``title`` is not.
    """
    id: str
    title: str
    desktop: Optional[str] = None
    host: Optional[str] = None

    def to_item(self) -> Dict[str, str]:
        """Projection handed to the host's render callback."""
        return {"title": self.title, "window_id": self.id}
