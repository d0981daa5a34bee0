"""Typed identifier collections for TaxonID.

A ``TaxonIds`` is an immutable, provider-tagged sequence of ``ResolvedId``
entries. The metadata of each entry is also exposed as parallel tuples
(``ids``, ``match``, ``multiple_matches``, ``pattern_match``, ``uri``,
``provider``) indexed by input order, and the whole collection converts to and
from a flat polars table without losing any attribute.

Raw identifiers are coerced through named constructors, one per input shape,
or through ``as_ids`` with an explicit ``InputShape`` tag.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING, Any, ClassVar, Dict, Iterator, List, Optional,
    Sequence, Tuple, Type, Union,
)

import polars as pl

from taxonid.types.data_classes import MatchStatus, ResolvedId

if TYPE_CHECKING:
    from taxonid.providers.base import ProviderSearch

logger = logging.getLogger(__name__)

# Column schema shared by every identifier table
BASE_SCHEMA: Dict[str, Any] = {
    "ids": pl.Utf8,
    "class": pl.Utf8,
    "match": pl.Utf8,
    "multiple_matches": pl.Boolean,
    "pattern_match": pl.Boolean,
    "uri": pl.Utf8,
    "provider": pl.Utf8,
}


def _as_bool(value: Any) -> bool:
    """Read a flag that may have come back from a text file as "true"/"false"."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class InputShape(Enum):
    """The shape of a value handed to ``as_ids``."""
    STRING = "string"
    NUMBER = "number"
    SEQUENCE = "sequence"
    TABLE = "table"
    TYPED = "typed"


@dataclass(frozen=True)
class TaxonIds:
    """An ordered, immutable collection of resolved identifiers.

    Subclasses set ``id_type``, the tag written to the ``class`` column of
    the table form.
    """

    id_type: ClassVar[str] = "taxonid"

    entries: Tuple[ResolvedId, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))

    # -------------------------------------------------------------------------
    # Sequence behaviour
    # -------------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Optional[str]]:
        return iter(self.ids)

    def __getitem__(self, index: int) -> ResolvedId:
        return self.entries[index]

    # -------------------------------------------------------------------------
    # Parallel metadata arrays
    # -------------------------------------------------------------------------
    @property
    def ids(self) -> Tuple[Optional[str], ...]:
        return tuple(e.value for e in self.entries)

    @property
    def match(self) -> Tuple[str, ...]:
        return tuple(e.match_status.label for e in self.entries)

    @property
    def match_status(self) -> Tuple[MatchStatus, ...]:
        return tuple(e.match_status for e in self.entries)

    @property
    def multiple_matches(self) -> Tuple[bool, ...]:
        return tuple(e.multiple_matches for e in self.entries)

    @property
    def pattern_match(self) -> Tuple[bool, ...]:
        return tuple(e.direct_match for e in self.entries)

    @property
    def uri(self) -> Tuple[Optional[str], ...]:
        return tuple(e.uri for e in self.entries)

    @property
    def provider(self) -> Tuple[Optional[str], ...]:
        return tuple(e.provider for e in self.entries)

    @property
    def found(self) -> Tuple[bool, ...]:
        return tuple(e.is_found for e in self.entries)

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------
    def _scalar_attributes(self) -> Dict[str, Any]:
        """Attributes shared by every entry (none for the base type)."""
        return {}

    @classmethod
    def combine(cls, parts: Sequence["TaxonIds"]) -> "TaxonIds":
        """Merge collections into one, preserving order.

        Scalar attributes (such as the wiki site) are taken from the first
        part; all parts must carry the same ones.
        """
        if not parts:
            return cls()
        scalars = parts[0]._scalar_attributes()
        for part in parts:
            if not isinstance(part, cls):
                raise TypeError(f"Cannot combine {type(part).__name__} into {cls.__name__}")
            if part._scalar_attributes() != scalars:
                raise ValueError(f"Cannot combine {cls.__name__} parts with different attributes")
        entries: List[ResolvedId] = []
        for part in parts:
            entries.extend(part.entries)
        return cls(entries=tuple(entries), **scalars)

    # -------------------------------------------------------------------------
    # Table round trip
    # -------------------------------------------------------------------------
    @classmethod
    def table_schema(cls) -> Dict[str, Any]:
        return dict(BASE_SCHEMA)

    def to_table(self) -> pl.DataFrame:
        """Convert to a flat table with one row per entry."""
        data = {
            "ids": list(self.ids),
            "class": [self.id_type] * len(self),
            "match": list(self.match),
            "multiple_matches": list(self.multiple_matches),
            "pattern_match": list(self.pattern_match),
            "uri": list(self.uri),
            "provider": list(self.provider),
        }
        for name, value in self._scalar_attributes().items():
            data[name] = [value] * len(self)
        return pl.DataFrame(data, schema=self.table_schema())

    @classmethod
    def _scalars_from_table(cls, df: pl.DataFrame) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_table(cls, df: pl.DataFrame, **defaults: Any) -> "TaxonIds":
        """Rebuild a collection from its table form.

        An empty table has no rows to carry scalar attributes such as the wiki
        site; ``defaults`` supplies them and is overridden by the table.

        Raises:
            ValueError: If required columns are missing or the ``class`` tag
                does not match this type, or a scalar column holds more than
                one value
        """
        missing = set(cls.table_schema()) - set(df.columns)
        if missing:
            raise ValueError(f"Identifier table is missing columns: {sorted(missing)}")
        tags = set(df["class"].to_list())
        if tags - {cls.id_type}:
            raise ValueError(f"Table holds {sorted(tags)} identifiers, expected '{cls.id_type}'")

        entries = [
            ResolvedId(
                value=None if row["ids"] is None else str(row["ids"]),
                match_status=MatchStatus.from_label(row["match"]),
                multiple_matches=_as_bool(row["multiple_matches"]),
                direct_match=_as_bool(row["pattern_match"]),
                uri=row["uri"],
                provider=row["provider"],
            )
            for row in df.iter_rows(named=True)
        ]
        scalars = dict(defaults)
        scalars.update(cls._scalars_from_table(df))
        return cls(entries=tuple(entries), **scalars)

    # -------------------------------------------------------------------------
    # Coercion from raw identifiers
    # -------------------------------------------------------------------------
    @classmethod
    def _make_one(
        cls,
        value: str,
        check: bool,
        provider: Optional["ProviderSearch"],
        **scalars: Any,
    ) -> "TaxonIds":
        """Wrap one raw identifier, optionally probing the provider for its URI."""
        value = str(value).strip()
        if not value:
            raise ValueError("Cannot coerce an empty identifier")
        uri = None
        if check:
            if provider is None:
                raise ValueError("check=True requires a provider to probe")
            uri = provider.check_uri(value)
            if uri is None:
                logger.warning(f"{cls.id_type} '{value}' could not be confirmed with {provider.name}")
        entry = ResolvedId(value=value, match_status=MatchStatus.FOUND, uri=uri)
        return cls(entries=(entry,), **scalars)

    @classmethod
    def from_string(
        cls,
        value: str,
        check: bool = True,
        provider: Optional["ProviderSearch"] = None,
        **scalars: Any,
    ) -> "TaxonIds":
        """Coerce a single identifier given as a string."""
        return cls._make_one(value, check, provider, **scalars)

    @classmethod
    def from_number(
        cls,
        value: Union[int, float],
        check: bool = True,
        provider: Optional["ProviderSearch"] = None,
        **scalars: Any,
    ) -> "TaxonIds":
        """Coerce a single numeric identifier (integral floats lose their ``.0``)."""
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return cls._make_one(str(value), check, provider, **scalars)

    @classmethod
    def from_values(
        cls,
        values: Sequence[Union[str, int, float]],
        check: bool = True,
        provider: Optional["ProviderSearch"] = None,
        **scalars: Any,
    ) -> "TaxonIds":
        """Coerce a sequence of raw identifiers, one singleton per value, merged in order."""
        parts = [
            cls.from_number(v, check, provider, **scalars)
            if isinstance(v, (int, float)) and not isinstance(v, bool)
            else cls.from_string(v, check, provider, **scalars)
            for v in values
        ]
        if not parts:
            return cls(**scalars)
        return cls.combine(parts)


@dataclass(frozen=True)
class EolIds(TaxonIds):
    """Encyclopedia of Life taxon identifiers."""

    id_type: ClassVar[str] = "eolid"


@dataclass(frozen=True)
class IucnIds(TaxonIds):
    """IUCN Red List taxon identifiers."""

    id_type: ClassVar[str] = "iucn"


@dataclass(frozen=True)
class WikiIds(TaxonIds):
    """Wiki page titles, tagged with the wiki they belong to."""

    id_type: ClassVar[str] = "wiki"

    wiki_site: str = "species"
    wiki_lang: str = "en"

    def _scalar_attributes(self) -> Dict[str, Any]:
        return {"wiki_site": self.wiki_site, "wiki_lang": self.wiki_lang}

    @classmethod
    def table_schema(cls) -> Dict[str, Any]:
        schema = dict(BASE_SCHEMA)
        schema["wiki_site"] = pl.Utf8
        schema["wiki_lang"] = pl.Utf8
        return schema

    @classmethod
    def _scalars_from_table(cls, df: pl.DataFrame) -> Dict[str, Any]:
        scalars = {}
        for column in ("wiki_site", "wiki_lang"):
            values = df[column].drop_nulls().unique().to_list()
            if len(values) > 1:
                raise ValueError(f"Wiki identifier table mixes {column} values: {sorted(values)}")
            if values:
                scalars[column] = values[0]
        return scalars


# Registry used to rebuild a collection from the ``class`` tag of a table
ID_TYPES: Dict[str, Type[TaxonIds]] = {
    EolIds.id_type: EolIds,
    IucnIds.id_type: IucnIds,
    WikiIds.id_type: WikiIds,
}


def ids_from_table(df: pl.DataFrame) -> TaxonIds:
    """Rebuild a typed collection, choosing the type from the ``class`` column."""
    if "class" not in df.columns:
        raise ValueError("Identifier table has no 'class' column")
    tags = df["class"].unique().to_list()
    if len(tags) != 1:
        raise ValueError(f"Identifier table must hold exactly one id type, found {tags}")
    if tags[0] not in ID_TYPES:
        raise ValueError(f"Unknown id type: {tags[0]}")
    return ID_TYPES[tags[0]].from_table(df)


def as_ids(
    value: Any,
    shape: InputShape,
    id_class: Type[TaxonIds],
    check: bool = True,
    provider: Optional["ProviderSearch"] = None,
    **scalars: Any,
) -> TaxonIds:
    """Coerce a value to ``id_class`` using the constructor for its declared shape.

    Args:
        value: The raw identifier(s), table or typed collection
        shape: Which constructor to use
        id_class: Target collection type
        check: Probe the provider for each identifier and record its URI
        provider: Provider used for probing (required when ``check`` is True)
        **scalars: Extra type attributes (``wiki_site``, ``wiki_lang``)

    Returns:
        A collection of type ``id_class``; a TYPED value is returned unchanged
    """
    if shape is InputShape.TYPED:
        if not isinstance(value, id_class):
            raise TypeError(f"Expected {id_class.__name__}, got {type(value).__name__}")
        return value
    if shape is InputShape.STRING:
        return id_class.from_string(value, check=check, provider=provider, **scalars)
    if shape is InputShape.NUMBER:
        return id_class.from_number(value, check=check, provider=provider, **scalars)
    if shape is InputShape.SEQUENCE:
        return id_class.from_values(list(value), check=check, provider=provider, **scalars)
    if shape is InputShape.TABLE:
        return id_class.from_table(value, **scalars)
    raise ValueError(f"Unsupported input shape: {shape}")
