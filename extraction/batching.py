"""Batch partitioning and progress arithmetic."""

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def partition(items: Sequence[T], max_size: int) -> List[List[T]]:
    """
    Split ``items`` into consecutive batches of at most ``max_size``.

    Concatenating the batches gives back ``items`` in order.
    """
    if max_size < 1:
        raise ValueError(f"max_size must be at least 1, got {max_size}")
    return [list(items[i:i + max_size]) for i in range(0, len(items), max_size)]


def progress_percent(completed: int, total: int) -> int:
    """round(100 * completed / total), halves rounded up."""
    if total <= 0:
        raise ValueError("total must be positive")
    completed = max(0, min(completed, total))
    return (200 * completed + total) // (2 * total)
