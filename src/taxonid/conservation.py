"""IUCN Red List conservation summaries.

A summary collects, for one taxon, its current Red List category, its
assessment history and the countries it occurs in. Names are first resolved
to IUCN ids non-interactively; taxa that cannot be resolved, or whose lookups
fail, get an empty summary rather than failing the whole call.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

import polars as pl

from taxonid.chooser import DeclineChooser
from taxonid.config import Config
from taxonid.providers.base import REQUEST_ERRORS
from taxonid.providers.iucn import IucnProvider
from taxonid.resolver import Resolver
from taxonid.types.identifiers import IucnIds

logger = logging.getLogger(__name__)

Distribution = Union[List[str], Dict[str, pl.DataFrame]]


@dataclass(frozen=True, eq=False)
class IucnSummary:
    """Conservation summary of one taxon.

    Attributes:
        status: Current Red List category code (e.g. ``"VU"``)
        history: Past assessments with columns ``year, code, category``
        distr: Country names, or with ``distr_detail`` a mapping of
            distribution code to a table of countries
        trend: Population trend; the Red List API does not expose it, so it
            is always None
    """

    status: Optional[str] = None
    history: Optional[pl.DataFrame] = None
    distr: Optional[Distribution] = None
    trend: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.status is None and self.history is None and self.distr is None


NULL_SUMMARY = IucnSummary()


def _history_frame(provider: IucnProvider, taxon_id: str) -> Optional[pl.DataFrame]:
    try:
        assessments = provider.history(taxon_id)
    except REQUEST_ERRORS as e:
        logger.warning(f"Could not fetch assessment history for IUCN taxon {taxon_id}: {e}")
        return None
    if not assessments:
        return None
    return pl.DataFrame(
        [a.model_dump(include={"year", "code", "category"}) for a in assessments],
        schema={"year": pl.Utf8, "code": pl.Utf8, "category": pl.Utf8},
    )


def _distribution(provider: IucnProvider, taxon_id: str, distr_detail: bool) -> Optional[Distribution]:
    try:
        countries = provider.countries(taxon_id)
    except REQUEST_ERRORS as e:
        logger.warning(f"Could not fetch countries for IUCN taxon {taxon_id}: {e}")
        return None
    if not countries:
        return None
    if not distr_detail:
        return [c.country for c in countries]

    df = pl.DataFrame(
        [c.model_dump() for c in countries],
        schema={
            "code": pl.Utf8,
            "country": pl.Utf8,
            "presence": pl.Utf8,
            "origin": pl.Utf8,
            "distribution_code": pl.Utf8,
        },
    )
    grouped: Dict[str, pl.DataFrame] = {}
    for code in sorted(df["distribution_code"].drop_nulls().unique().to_list()):
        grouped[code] = df.filter(pl.col("distribution_code") == code)
    return grouped


def summarize_id(provider: IucnProvider, taxon_id: Optional[str], distr_detail: bool = False) -> IucnSummary:
    """Build the summary for one IUCN taxon id (None gives the empty summary)."""
    if taxon_id is None:
        return NULL_SUMMARY
    try:
        species = provider.species_by_id(taxon_id)
    except REQUEST_ERRORS as e:
        logger.warning(f"taxon ID '{taxon_id}' not found, returning an empty summary: {e}")
        return NULL_SUMMARY
    if not species:
        logger.warning(f"taxon ID '{taxon_id}' not found, returning an empty summary")
        return NULL_SUMMARY

    return IucnSummary(
        status=species[0].category,
        history=_history_frame(provider, taxon_id),
        distr=_distribution(provider, taxon_id, distr_detail),
        trend=None,
    )


def _summarize_all(
    provider: IucnProvider,
    taxon_ids: List[Optional[str]],
    distr_detail: bool,
    max_workers: int,
) -> List[IucnSummary]:
    if max_workers > 1 and len(taxon_ids) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda i: summarize_id(provider, i, distr_detail), taxon_ids))
    return [summarize_id(provider, i, distr_detail) for i in taxon_ids]


def iucn_summary(
    names: Union[str, Iterable[str]],
    config: Optional[Config] = None,
    distr_detail: bool = False,
    max_workers: int = 1,
    provider: Optional[IucnProvider] = None,
) -> Dict[str, IucnSummary]:
    """Summarize the conservation status of taxa given by name.

    Args:
        names: Scientific names
        config: Settings holding the IUCN token
        distr_detail: Group countries by distribution code
        max_workers: Number of names handled concurrently
        provider: IUCN provider to use (built from ``config`` if omitted)

    Returns:
        Mapping of name to summary, in input order

    Raises:
        MissingCredentialError: If no IUCN token is configured
    """
    name_list = [names] if isinstance(names, str) else list(names)
    provider = provider or IucnProvider(config)
    provider.validate_config()

    resolver = Resolver(provider, chooser=DeclineChooser())
    ids = resolver.resolve(name_list, ask=False, max_workers=max_workers)

    missing = [name for name, found in zip(name_list, ids.found) if not found]
    if missing:
        logger.warning(f"taxa '{', '.join(missing)}' not found, returning empty summaries")

    summaries = _summarize_all(provider, list(ids.ids), distr_detail, max_workers)
    return dict(zip(name_list, summaries))


def iucn_summary_id(
    taxon_ids: Union[IucnIds, str, int, Iterable[Union[str, int]]],
    config: Optional[Config] = None,
    distr_detail: bool = False,
    max_workers: int = 1,
    provider: Optional[IucnProvider] = None,
) -> Dict[str, IucnSummary]:
    """Summarize the conservation status of taxa given by IUCN id.

    Returns:
        Mapping of id (as a string) to summary, in input order
    """
    if isinstance(taxon_ids, (str, int)):
        id_list = [str(taxon_ids)]
    else:
        values = list(taxon_ids)
        id_list = [str(i) for i in values if i is not None]
        if len(id_list) < len(values):
            logger.warning(f"Skipping {len(values) - len(id_list)} unresolved IUCN id(s)")
    provider = provider or IucnProvider(config)
    provider.validate_config()
    summaries = _summarize_all(provider, id_list, distr_detail, max_workers)
    return dict(zip(id_list, summaries))


def iucn_status(summaries: Dict[str, IucnSummary]) -> Dict[str, Optional[str]]:
    """Return the Red List category of each summary."""
    return {key: summary.status for key, summary in summaries.items()}
