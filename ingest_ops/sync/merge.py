"""
Snapshot merge for the live status list.

The operator's list keeps its own order: entries already shown are updated
in place, entries new to the client are appended at the tail in server
order, and entries missing from the snapshot stay where they are. A request
is only removed from the list by an explicit local delete.
"""

from typing import Any, Hashable, Sequence, TypeVar

T = TypeVar("T")


def record_id(item: Any) -> Hashable:
    """Identity of a list entry: its ``id`` attribute or ``"id"`` key."""
    if isinstance(item, dict):
        return item["id"]
    return item.id


def merge_snapshot(local: Sequence[T], snapshot: Sequence[T]) -> list[T]:
    """
    Merge a freshly fetched snapshot into the local ordered list.

    Args:
        local: Entries currently displayed, in display order
        snapshot: Entries returned by the server, in server order

    Returns:
        A new list; neither input is modified.

    Example:
        >>> merge_snapshot([{"id": "a"}, {"id": "b"}],
        ...                [{"id": "a", "v": 2}, {"id": "c"}, {"id": "b", "v": 2}])
        [{'id': 'a', 'v': 2}, {'id': 'b', 'v': 2}, {'id': 'c'}]
    """
    by_id = {}
    for item in snapshot:
        by_id.setdefault(record_id(item), item)

    merged = []
    for item in local:
        key = record_id(item)
        if key in by_id:
            merged.append(by_id.pop(key))
        else:
            merged.append(item)

    # Whatever was not consumed is new to this client
    for item in snapshot:
        key = record_id(item)
        if key in by_id:
            merged.append(by_id.pop(key))
    return merged
