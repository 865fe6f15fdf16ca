"""Existence-based reconciliation of a local and a remote snapshot.

Merge policy:

* a record whose id exists only remotely is added, flagged ``synced=True``;
* a record whose id exists locally is kept exactly as it is, whether or not
  the remote copy differs ("local always wins");
* nothing is ever removed, so deletes are not propagated and a record
  deleted locally but still present remotely comes back on the next merge.

``reconcile`` is a pure function: no I/O, no clock, no randomness.  Given
the same inputs it always returns the same result, and feeding its merged
output back in with the same remote snapshot changes nothing.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..records import Record, RecordT, mark_synced
from .models import MergedResult


def _recency(record: Record) -> str:
    return getattr(record, "updated_at", record.created_at)


def reconcile(
    local: Iterable[RecordT], remote: Iterable[RecordT]
) -> MergedResult[RecordT]:
    """Merge *remote* into *local* for one record kind.

    Args:
        local: Current local records, possibly with unsynced edits.
        remote: Full snapshot of the remote records of the same kind.

    Returns:
        ``MergedResult`` with the merged collection (local order first,
        then additions ordered by ``(created_at, id)``) and the additions.
    """
    merged: dict[str, RecordT] = {}
    for record in local:
        # First occurrence wins if the local collection holds duplicates.
        merged.setdefault(record.id, record)

    incoming: dict[str, RecordT] = {}
    for record in remote:
        if record.id in merged:
            continue
        current = incoming.get(record.id)
        if current is None or _recency(record) > _recency(current):
            incoming[record.id] = record

    added = sorted(
        (mark_synced(record) for record in incoming.values()),
        key=lambda r: (r.created_at, r.id),
    )
    for record in added:
        merged[record.id] = record

    return MergedResult(merged=list(merged.values()), added=added)
