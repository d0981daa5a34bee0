"""Core data classes for TaxonID.

This module defines the immutable records that flow through the resolution
workflow: candidate rows returned by a provider and the per-name resolution
result.

Design Principles:
- Immutability: All classes are frozen to prevent modification after creation
- Explicit status: Every outcome carries a MatchStatus, never an exception
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Set, Tuple

import polars as pl


class MatchStatus(Enum):
    """The possible outcomes of resolving one name."""
    def __init__(self, label: str, groups: Tuple[str, ...]):
        self.label = label
        self.groups: Set[str] = set(groups)

    # Terminal success status group
    FOUND = ("found", ("terminal", "success"))

    # Terminal failure status group
    NOT_FOUND = ("not_found", ("terminal", "failure"))
    AMBIGUOUS_NO_ASK = ("ambiguous_no_ask", ("terminal", "failure", "ambiguous"))
    AMBIGUOUS_USER_DECLINED = ("ambiguous_user_declined", ("terminal", "failure", "ambiguous"))

    @property
    def is_found(self) -> bool:
        """Return whether the status indicates a resolved identifier."""
        return "success" in self.groups

    @property
    def is_ambiguous(self) -> bool:
        """Return whether resolution stopped because several candidates remained."""
        return "ambiguous" in self.groups

    @classmethod
    def from_label(cls, label: str) -> "MatchStatus":
        """Look up a status by its table label (e.g. ``"not_found"``)."""
        for status in cls:
            if status.label == label:
                return status
        raise ValueError(f"Unknown match status: {label}")


@dataclass(frozen=True)
class CandidateRecord:
    """One provider hit, before or after detail expansion.

    ``external_id`` is the identifier a caller would use with the provider.
    ``page_id`` is the provider's grouping key where one exists (the EOL page
    a taxon concept belongs to); it is also the key handed to the detail
    lookup.
    """

    external_id: str
    display_name: str
    source: Optional[str] = None
    rank: Optional[str] = None
    page_id: Optional[str] = None
    size: Optional[int] = None
    wordcount: Optional[int] = None
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # Freeze the provider-specific fields along with the rest of the record
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a flat dictionary."""
        result = {
            "external_id": self.external_id,
            "display_name": self.display_name,
            "source": self.source,
            "rank": self.rank,
            "page_id": self.page_id,
            "size": self.size,
            "wordcount": self.wordcount,
        }
        result.update(self.extra)
        return result


def candidates_to_frame(
    candidates: Sequence[CandidateRecord],
    columns: Mapping[str, str],
) -> pl.DataFrame:
    """Build a candidate table from records.

    Args:
        candidates: Records in row order
        columns: Ordered mapping of output column name to record field
            (a CandidateRecord attribute or a key of ``extra``)

    Returns:
        A DataFrame with one row per record and the columns in the given order
    """
    data: Dict[str, list] = {name: [] for name in columns}
    for candidate in candidates:
        flat = candidate.to_dict()
        for name, source_field in columns.items():
            data[name].append(flat.get(source_field))
    return pl.DataFrame(data)


@dataclass(frozen=True)
class ResolvedId:
    """The resolution result for one input name or coerced identifier."""

    value: Optional[str]
    match_status: MatchStatus
    multiple_matches: bool = False
    direct_match: bool = False
    uri: Optional[str] = None
    provider: Optional[str] = None

    def __post_init__(self):
        if (self.value is None) == self.match_status.is_found:
            raise ValueError(
                f"value must be set if and only if the status is found "
                f"(value={self.value!r}, status={self.match_status.label})"
            )
        if self.direct_match and not self.match_status.is_found:
            raise ValueError("direct_match requires a found status")

    @property
    def is_found(self) -> bool:
        return self.match_status.is_found

    @classmethod
    def not_found(
        cls,
        status: MatchStatus = MatchStatus.NOT_FOUND,
        multiple_matches: bool = False,
    ) -> "ResolvedId":
        """Build an unresolved result with the given terminal status."""
        return cls(value=None, match_status=status, multiple_matches=multiple_matches)
