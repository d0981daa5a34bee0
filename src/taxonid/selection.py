"""Ordinal row selection over candidate lists and tables.

Rows are addressed with 1-based positions, as a user reading a printed
candidate table would number them.
"""

from collections.abc import Iterable
from typing import List, Optional, Sequence, TypeVar, Union

import polars as pl

T = TypeVar("T")

RowSelector = Union[int, Iterable]


def _selected_positions(rows: RowSelector, length: int) -> List[int]:
    """Normalize a selector to sorted, in-range, 0-based positions.

    Raises:
        TypeError: If the selector is a bool, or is neither an int nor an
            iterable of ints
    """
    if isinstance(rows, bool):
        raise TypeError("Row selector must be an int or an iterable of ints, not bool")
    if isinstance(rows, int):
        wanted = {rows}
    elif isinstance(rows, Iterable) and not isinstance(rows, (str, bytes)):
        wanted = set()
        for row in rows:
            if isinstance(row, bool) or not isinstance(row, int):
                raise TypeError(f"Row selector entries must be ints, got {type(row).__name__}")
            wanted.add(row)
    else:
        raise TypeError(f"Row selector must be an int or an iterable of ints, got {type(rows).__name__}")

    return sorted(row - 1 for row in wanted if 1 <= row <= length)


def sub_rows(candidates: Sequence[T], rows: Optional[RowSelector] = None) -> List[T]:
    """Select candidates by 1-based position.

    Args:
        candidates: The candidates, in display order
        rows: ``None`` for all rows, an int, or an iterable of ints
            (range, list, set, tuple). Out-of-range positions are ignored.

    Returns:
        A new list holding the selected candidates in their original
        relative order. The input is never modified.
    """
    if rows is None:
        return list(candidates)
    return [candidates[i] for i in _selected_positions(rows, len(candidates))]


def sub_rows_frame(df: pl.DataFrame, rows: Optional[RowSelector] = None) -> pl.DataFrame:
    """Apply ``sub_rows`` semantics to the rows of a DataFrame."""
    if rows is None:
        return df.clone()
    positions = _selected_positions(rows, df.height)
    if not positions:
        return df.clear()
    return df.select(pl.all().gather(positions))
