"""Encyclopedia of Life provider.

EOL search returns pages; each page lists the taxon concepts that partner
hierarchies (Catalogue of Life, ITIS, NCBI, ...) hold for it. Identifiers
resolved here are those taxon concept ids, while the URI points at the page.
"""

import dataclasses
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from taxonid.config import Config
from taxonid.constants import (
    EOL_HIERARCHY_ENTRY_URL,
    EOL_PAGE_URI,
    EOL_PAGES_URL,
    EOL_SEARCH_URL,
    EOL_SOURCE_SHORT_NAMES,
)
from taxonid.providers.base import ProviderSearch
from taxonid.types.data_classes import CandidateRecord
from taxonid.types.identifiers import EolIds
from taxonid.types.payloads import EolHierarchyEntry, EolPage, EolSearchResponse

logger = logging.getLogger(__name__)

# Optional search parameters accepted by the EOL search endpoint
SEARCH_OPTIONS = (
    "page",
    "exact",
    "filter_by_taxon_concept_id",
    "filter_by_hierarchy_entry_id",
    "filter_by_string",
    "cache_ttl",
)


class EolProvider(ProviderSearch):
    """Search adapter for the EOL search and pages APIs."""

    name = "eol"
    label = "eolid"
    id_class = EolIds
    needs_detail = True
    table_columns = {
        "pageid": "page_id",
        "eolid": "external_id",
        "name": "display_name",
        "source": "source",
        "rank": "rank",
    }

    def __init__(
        self,
        config: Optional[Config] = None,
        session: Optional[requests.Session] = None,
        **search_options: Any,
    ):
        super().__init__(config, session)
        unknown = set(search_options) - set(SEARCH_OPTIONS)
        if unknown:
            raise ValueError(f"Unknown EOL search options: {sorted(unknown)}")
        self.search_options = {k: v for k, v in search_options.items() if v is not None}

    def _with_key(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if self.config.eol_key:
            params["key"] = self.config.eol_key
        return params

    def search(self, name: str) -> List[CandidateRecord]:
        params = {"q": name, "page": 1}
        params.update(self.search_options)
        payload = EolSearchResponse.model_validate(self._get_json(EOL_SEARCH_URL, self._with_key(params)))
        if payload.total_results == 0:
            return []
        return [
            CandidateRecord(
                external_id=str(hit.id),
                display_name=hit.title,
                page_id=str(hit.id),
                extra={"link": hit.link},
            )
            for hit in payload.results
        ]

    def fetch_detail(self, key: str) -> List[CandidateRecord]:
        """Fetch the taxon concepts listed on one EOL page."""
        url = EOL_PAGES_URL.format(page_id=key)
        page = EolPage.from_response(self._get_json(url, self._with_key({"taxonomy": "true"})))
        return [
            CandidateRecord(
                external_id=str(concept.identifier),
                display_name=concept.scientific_name,
                source=concept.name_according_to,
                rank=concept.taxon_rank,
                page_id=key,
            )
            for concept in page.taxon_concepts
        ]

    def prepare(self, candidates: Sequence[CandidateRecord]) -> List[CandidateRecord]:
        """Shorten source titles, drop concepts from unlisted hierarchies, sort by name."""
        kept = []
        for candidate in candidates:
            short_name = EOL_SOURCE_SHORT_NAMES.get(candidate.source)
            if short_name is None:
                logger.debug(f"Dropping EOL concept {candidate.external_id} from source '{candidate.source}'")
                continue
            kept.append(dataclasses.replace(candidate, source=short_name))
        return sorted(kept, key=lambda c: c.display_name)

    def source_uri(self, candidate: CandidateRecord) -> Optional[str]:
        if candidate.page_id is None:
            return None
        return EOL_PAGE_URI.format(page_id=candidate.page_id)

    def page_id_for(self, identifier: str) -> Optional[str]:
        """Return the page (taxon concept) an EOL hierarchy entry belongs to."""
        url = EOL_HIERARCHY_ENTRY_URL.format(entry_id=identifier)
        payload = self._get_json_or_none(url, self._with_key({}))
        if payload is None:
            return None
        entry = EolHierarchyEntry.model_validate(payload)
        if entry.taxon_concept_id is None:
            return None
        return str(entry.taxon_concept_id)

    def _lookup_uri(self, identifier: str) -> Optional[str]:
        page_id = self.page_id_for(identifier)
        if page_id is None:
            return None
        return EOL_PAGE_URI.format(page_id=page_id)
