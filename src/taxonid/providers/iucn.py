"""IUCN Red List provider (API v3).

Every request needs the Red List API token from ``Config.iucn_key``.
Besides name search, this adapter exposes the per-species lookups used by
the conservation summary.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from taxonid.constants import (
    IUCN_COUNTRIES_URL,
    IUCN_DETAILS_URI,
    IUCN_HISTORY_URL,
    IUCN_SPECIES_ID_URL,
    IUCN_SPECIES_URL,
)
from taxonid.providers.base import ProviderSearch
from taxonid.types.data_classes import CandidateRecord
from taxonid.types.identifiers import IucnIds
from taxonid.types.payloads import (
    IucnAssessment,
    IucnCountriesResponse,
    IucnCountry,
    IucnHistoryResponse,
    IucnSpecies,
    IucnSpeciesResponse,
)

logger = logging.getLogger(__name__)


def species_query(name: str) -> str:
    """Reduce a name to lower-case genus and species (drops infraspecific parts)."""
    return " ".join(name.split()[:2]).lower()


class IucnProvider(ProviderSearch):
    """Search adapter for the IUCN Red List species API."""

    name = "iucn"
    label = "IUCN ID"
    id_class = IucnIds
    exact_match_wins = True
    table_columns = {
        "taxonid": "external_id",
        "scientific_name": "display_name",
        "rank": "rank",
        "category": "category",
    }

    def validate_config(self) -> None:
        self.config.require("iucn_key")

    def _token(self) -> Dict[str, Any]:
        return {"token": self.config.require("iucn_key")}

    def query_text(self, name: str) -> str:
        return species_query(name)

    def search(self, name: str) -> List[CandidateRecord]:
        url = IUCN_SPECIES_URL.format(name=quote(species_query(name)))
        payload = IucnSpeciesResponse.model_validate(self._get_json(url, self._token()))
        candidates = []
        seen = set()
        for species in payload.result:
            if species.taxonid in seen:
                continue
            seen.add(species.taxonid)
            candidates.append(self._to_candidate(species))
        return candidates

    @staticmethod
    def _to_candidate(species: IucnSpecies) -> CandidateRecord:
        return CandidateRecord(
            external_id=str(species.taxonid),
            display_name=species.scientific_name,
            source="IUCN",
            rank=species.infra_rank or "species",
            extra={"category": species.category, "main_common_name": species.main_common_name},
        )

    def source_uri(self, candidate: CandidateRecord) -> Optional[str]:
        return IUCN_DETAILS_URI.format(taxon_id=candidate.external_id)

    def species_by_id(self, taxon_id: str) -> List[IucnSpecies]:
        """Return the Red List record(s) for a taxon id (empty when unknown)."""
        url = IUCN_SPECIES_ID_URL.format(taxon_id=taxon_id)
        return IucnSpeciesResponse.model_validate(self._get_json(url, self._token())).result

    def history(self, taxon_id: str) -> List[IucnAssessment]:
        """Return the historical assessments of a taxon, most recent first."""
        url = IUCN_HISTORY_URL.format(taxon_id=taxon_id)
        return IucnHistoryResponse.model_validate(self._get_json(url, self._token())).result

    def countries(self, taxon_id: str) -> List[IucnCountry]:
        """Return the countries of occurrence of a taxon."""
        url = IUCN_COUNTRIES_URL.format(taxon_id=taxon_id)
        return IucnCountriesResponse.model_validate(self._get_json(url, self._token())).result

    def _lookup_uri(self, identifier: str) -> Optional[str]:
        if self.species_by_id(identifier):
            return IUCN_DETAILS_URI.format(taxon_id=identifier)
        return None
