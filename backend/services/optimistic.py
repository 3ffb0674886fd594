"""
Optimistic insert bookkeeping.

A caller inserts an item locally under a temporary id before the server
has confirmed it. The reconciler remembers which ids are pending so that
a refresh from the server does not drop an insert still in flight, swaps
the temporary row for the saved one on success and removes it on failure.
"""

from typing import Callable
from uuid import uuid4

TEMP_ID_PREFIX = "temp-"


def is_temporary_id(item_id: str | None) -> bool:
    return bool(item_id) and str(item_id).startswith(TEMP_ID_PREFIX)


class PendingIdReconciler:
    """Tracks temporary ids for one collection of dict rows."""

    def __init__(self, id_field: str = "id"):
        self.id_field = id_field
        self._pending: dict[str, dict] = {}
        self._confirmed: dict[str, str] = {}

    @property
    def pending_ids(self) -> list[str]:
        return list(self._pending)

    def add_pending(self, item: dict) -> dict:
        """Return a copy of ``item`` under a fresh temporary id and track it."""
        temp_id = f"{TEMP_ID_PREFIX}{uuid4()}"
        pending = {**item, self.id_field: temp_id}
        self._pending[temp_id] = pending
        return pending

    def confirm(self, temp_id: str, saved: dict) -> None:
        """Mark a pending insert as saved under the server's id."""
        self._pending.pop(temp_id, None)
        self._confirmed[temp_id] = saved[self.id_field]

    def discard(self, temp_id: str) -> None:
        """Forget a pending insert that the server rejected."""
        self._pending.pop(temp_id, None)

    def resolve(self, item_id: str) -> str:
        """Map a temporary id to its confirmed id, if it has one."""
        return self._confirmed.get(item_id, item_id)

    def replace(self, items: list[dict], temp_id: str, saved: dict | None) -> list[dict]:
        """Swap the temporary row in ``items`` for ``saved`` (or drop it when None)."""
        result = []
        for item in items:
            if item.get(self.id_field) == temp_id:
                if saved is not None:
                    result.append(saved)
                continue
            result.append(item)
        return result

    def merge(
        self,
        server_items: list[dict],
        where: Callable[[dict], bool] | None = None,
    ) -> list[dict]:
        """Combine a server listing with local inserts the server has not confirmed yet.

        ``where`` limits which pending items belong to this listing.
        """
        server_ids = {item[self.id_field] for item in server_items}
        merged = list(server_items)
        for temp_id, item in self._pending.items():
            if temp_id in server_ids:
                continue
            if where is None or where(item):
                merged.append(item)
        return merged
