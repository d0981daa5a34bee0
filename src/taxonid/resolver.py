"""Name resolution workflow for TaxonID.

This module turns free-text names into provider identifiers. For each name it
searches the provider, keeps the hits whose name contains the query, expands
them with the provider's detail lookup where one exists, applies the row
selector, and then settles on a single candidate or reports why it could not.

Outcomes are always reported as a ``ResolvedId`` with a ``MatchStatus``.
Only a missing credential (before any name is processed) or, with
``strict=True``, transport failures collected over the batch are raised.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import polars as pl
from tqdm import tqdm

from taxonid.chooser import ConsoleChooser, InteractiveChooser
from taxonid.constants import NOT_FOUND_MESSAGE
from taxonid.exceptions import BatchResolutionError, ProviderError
from taxonid.providers.base import REQUEST_ERRORS, ProviderSearch
from taxonid.selection import RowSelector, sub_rows
from taxonid.types.data_classes import CandidateRecord, MatchStatus, ResolvedId
from taxonid.types.identifiers import TaxonIds

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Lower-case a name and treat underscores as spaces."""
    return name.replace("_", " ").strip().lower()


def filter_by_name(candidates: Sequence[CandidateRecord], query: str) -> List[CandidateRecord]:
    """Keep candidates whose display name contains the query (case-insensitive)."""
    needle = normalize_name(query)
    return [c for c in candidates if needle in normalize_name(c.display_name)]


def exact_matches(candidates: Sequence[CandidateRecord], query: str) -> List[CandidateRecord]:
    """Return the candidates whose display name equals the query (case-insensitive)."""
    needle = normalize_name(query)
    return [c for c in candidates if normalize_name(c.display_name) == needle]


def _as_name_list(names: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(names, str):
        return [names]
    return [str(name) for name in names]


class Resolver:
    """Resolves names to identifiers with one provider.

    Args:
        provider: The provider adapter to search
        chooser: Picks a row when several candidates remain in interactive
            mode (defaults to a console prompt)
        detail_workers: Number of concurrent detail lookups per name
    """

    def __init__(
        self,
        provider: ProviderSearch,
        chooser: Optional[InteractiveChooser] = None,
        detail_workers: int = 1,
    ):
        if detail_workers < 1:
            raise ValueError("detail_workers must be at least 1")
        self.provider = provider
        self.chooser = chooser if chooser is not None else ConsoleChooser()
        self.detail_workers = detail_workers

    # -------------------------------------------------------------------------
    # Candidate collection (search, name filter, detail, row selection)
    # -------------------------------------------------------------------------
    def _search(self, name: str) -> List[CandidateRecord]:
        try:
            return self.provider.search(name)
        except REQUEST_ERRORS as e:
            raise ProviderError(self.provider.name, name, e) from e

    def _fetch_one_detail(self, name: str, key: str) -> List[CandidateRecord]:
        try:
            return self.provider.fetch_detail(key)
        except REQUEST_ERRORS as e:
            logger.warning(f"Skipping {self.provider.name} record '{key}' for taxon '{name}': {e}")
            return []

    def _fetch_details(self, name: str, hits: Sequence[CandidateRecord]) -> List[CandidateRecord]:
        """Expand hits with the provider's detail lookup, one call per distinct key."""
        keys = list(dict.fromkeys(self.provider.detail_key(hit) for hit in hits))
        if self.detail_workers > 1 and len(keys) > 1:
            with ThreadPoolExecutor(max_workers=self.detail_workers) as executor:
                expanded = list(executor.map(lambda key: self._fetch_one_detail(name, key), keys))
        else:
            expanded = [self._fetch_one_detail(name, key) for key in keys]
        return [candidate for group in expanded for candidate in group]

    def collect_candidates(
        self,
        name: str,
        rows: Optional[RowSelector] = None,
    ) -> Tuple[List[CandidateRecord], bool]:
        """Run the search, name filter, detail and row selection steps.

        Args:
            name: The name to search for
            rows: Optional 1-based row selector applied last

        Returns:
            Tuple containing:
            - the selected candidates (empty when nothing survived)
            - whether more than one candidate existed before row selection

        Raises:
            ProviderError: If the primary search failed
        """
        logger.info(f"Retrieving data for taxon '{name}'")
        hits = self._search(name)
        if not hits:
            logger.warning(f"{NOT_FOUND_MESSAGE} (taxon '{name}')")
            return [], False

        matched = filter_by_name(hits, self.provider.query_text(name))
        if not matched:
            found = "; ".join(hit.display_name for hit in hits)
            logger.warning(f"{NOT_FOUND_MESSAGE} (taxon '{name}'). Did find: {found}")
            return [], False

        if self.provider.needs_detail:
            matched = self._fetch_details(name, matched)
        candidates = self.provider.prepare(matched)
        if not candidates:
            logger.warning(f"{NOT_FOUND_MESSAGE} (taxon '{name}')")
            return [], False

        multiple = len(candidates) > 1
        selected = sub_rows(candidates, rows)
        if not selected:
            logger.warning(f"No {self.provider.label} left for taxon '{name}' after row selection")
        return selected, multiple

    # -------------------------------------------------------------------------
    # Single name
    # -------------------------------------------------------------------------
    def _found(self, candidate: CandidateRecord, multiple: bool, direct: bool) -> ResolvedId:
        return ResolvedId(
            value=candidate.external_id,
            match_status=MatchStatus.FOUND,
            multiple_matches=multiple,
            direct_match=direct,
            uri=self.provider.source_uri(candidate),
            provider=candidate.source,
        )

    def _ask(self, name: str, candidates: List[CandidateRecord]) -> Optional[int]:
        """Ask the chooser for a row; anything but a valid row number is a refusal."""
        choice = self.chooser.choose(name, self.provider.candidate_table(candidates))
        if isinstance(choice, bool) or not isinstance(choice, int):
            return None
        if 1 <= choice <= len(candidates):
            return choice
        return None

    def resolve_name(
        self,
        name: str,
        ask: bool = True,
        rows: Optional[RowSelector] = None,
    ) -> ResolvedId:
        """Resolve one name to at most one identifier.

        Raises:
            ProviderError: If the primary search failed
        """
        candidates, multiple = self.collect_candidates(name, rows)
        if not candidates:
            return ResolvedId.not_found(multiple_matches=multiple)

        if len(candidates) == 1:
            return self._found(candidates[0], multiple, direct=True)

        if self.provider.exact_match_wins:
            exact = exact_matches(candidates, self.provider.query_text(name))
            if len(exact) == 1:
                logger.debug(f"Exact name match settles taxon '{name}'")
                return self._found(exact[0], multiple, direct=True)

        if not ask:
            logger.warning(
                f"More than one {self.provider.label} found for taxon '{name}'; "
                f"refine query or set ask=True"
            )
            return ResolvedId.not_found(MatchStatus.AMBIGUOUS_NO_ASK, multiple_matches=multiple)

        choice = self._ask(name, candidates)
        if choice is None:
            logger.warning(f"No {self.provider.label} chosen for taxon '{name}'")
            return ResolvedId.not_found(MatchStatus.AMBIGUOUS_USER_DECLINED, multiple_matches=multiple)
        return self._found(candidates[choice - 1], multiple, direct=False)

    # -------------------------------------------------------------------------
    # Batches
    # -------------------------------------------------------------------------
    def _resolve_slot(
        self,
        name: str,
        ask: bool,
        rows: Optional[RowSelector],
    ) -> Tuple[ResolvedId, Optional[ProviderError]]:
        try:
            return self.resolve_name(name, ask=ask, rows=rows), None
        except ProviderError as e:
            logger.error(str(e))
            return ResolvedId.not_found(), e

    def _run_batch(self, func, names: List[str], max_workers: int, progress_bar: bool, desc: str) -> list:
        """Apply ``func`` to every name, returning results in input order."""
        if max_workers > 1 and len(names) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                results = executor.map(func, names)
                if progress_bar:
                    results = tqdm(results, total=len(names), desc=desc)
                return list(results)
        iter_names = tqdm(names, desc=desc) if progress_bar else names
        return [func(name) for name in iter_names]

    def resolve(
        self,
        names: Union[str, Iterable[str]],
        ask: bool = True,
        rows: Optional[RowSelector] = None,
        max_workers: int = 1,
        progress_bar: bool = False,
        strict: bool = False,
    ) -> TaxonIds:
        """Resolve a batch of names, one result per name in input order.

        Args:
            names: One name or an iterable of names
            ask: Ask the chooser when several candidates remain
            rows: Row selector applied to every name's candidates
            max_workers: Number of names resolved concurrently (ignored when
                ``ask`` is True)
            progress_bar: Show a progress bar
            strict: Raise ``BatchResolutionError`` after the batch if any
                name's search failed

        Returns:
            The provider's identifier collection

        Raises:
            ConfigurationError: If the provider is missing a credential
            BatchResolutionError: With ``strict=True``, if any search failed
        """
        name_list = _as_name_list(names)
        self.provider.validate_config()

        if ask and max_workers > 1:
            logger.warning("Interactive resolution runs sequentially; ignoring max_workers")
            max_workers = 1

        slots = self._run_batch(
            lambda name: self._resolve_slot(name, ask, rows),
            name_list,
            max_workers,
            progress_bar,
            desc=f"Resolving {self.provider.label}s",
        )

        results = self.provider.id_class(
            entries=tuple(entry for entry, _ in slots),
            **self.provider.id_attributes(),
        )
        errors = {name: error for name, (_, error) in zip(name_list, slots) if error is not None}
        if errors:
            logger.error(f"{len(errors)} of {len(name_list)} name(s) failed with {self.provider.name}")
            if strict:
                raise BatchResolutionError(results, errors)
        return results

    def _candidate_slot(self, name: str, rows: Optional[RowSelector]) -> Optional[pl.DataFrame]:
        try:
            candidates, _ = self.collect_candidates(name, rows)
        except ProviderError as e:
            logger.error(str(e))
            return None
        if not candidates:
            return None
        return self.provider.candidate_table(candidates)

    def resolve_all(
        self,
        names: Union[str, Iterable[str]],
        rows: Optional[RowSelector] = None,
        max_workers: int = 1,
        progress_bar: bool = False,
    ) -> List[Tuple[str, Optional[pl.DataFrame]]]:
        """Return every candidate table instead of choosing one identifier.

        Returns:
            ``(name, table)`` pairs in input order; ``table`` is None when
            nothing survived for that name or its search failed

        Raises:
            ConfigurationError: If the provider is missing a credential
        """
        name_list = _as_name_list(names)
        self.provider.validate_config()
        tables = self._run_batch(
            lambda name: self._candidate_slot(name, rows),
            name_list,
            max_workers,
            progress_bar,
            desc="Collecting candidates",
        )
        return list(zip(name_list, tables))
