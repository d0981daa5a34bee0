"""Pydantic models for provider JSON payloads.

Only the fields TaxonID reads are declared; everything else in a response is
ignored. A payload that does not match raises ``pydantic.ValidationError``,
which the providers treat as a failed request.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderPayload(BaseModel):
    """Base for provider payloads: unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# =============================================================================
# Encyclopedia of Life
# =============================================================================


class EolSearchHit(ProviderPayload):
    """One page returned by the EOL search endpoint."""

    id: int
    title: str
    link: Optional[str] = None
    content: Any = None


class EolSearchResponse(ProviderPayload):
    total_results: int = Field(0, alias="totalResults")
    results: List[EolSearchHit] = Field(default_factory=list)


class EolTaxonConcept(ProviderPayload):
    """A taxon concept listed on an EOL page, as one provider hierarchy sees it."""

    identifier: Union[int, str]
    scientific_name: str = Field(alias="scientificName")
    name_according_to: Optional[str] = Field(None, alias="nameAccordingTo")
    canonical_form: Optional[str] = Field(None, alias="canonicalForm")
    source_identifier: Optional[str] = Field(None, alias="sourceIdentifier")
    taxon_rank: Optional[str] = Field(None, alias="taxonRank")

    @field_validator("source_identifier", mode="before")
    @classmethod
    def _coerce_source_identifier(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class EolPage(ProviderPayload):
    """An EOL page with its taxonomy.

    Older responses list ``taxonConcepts`` at the top level, newer ones nest
    the page under ``taxonConcept``. Both shapes are accepted.
    """

    identifier: Optional[Union[int, str]] = None
    scientific_name: Optional[str] = Field(None, alias="scientificName")
    taxon_concepts: List[EolTaxonConcept] = Field(default_factory=list, alias="taxonConcepts")

    @classmethod
    def from_response(cls, payload: Any) -> "EolPage":
        """Validate a pages response; a body that is not an object fails validation."""
        if isinstance(payload, dict) and isinstance(payload.get("taxonConcept"), dict):
            payload = payload["taxonConcept"]
        return cls.model_validate(payload)


class EolHierarchyEntry(ProviderPayload):
    taxon_concept_id: Optional[Union[int, str]] = Field(None, alias="taxonConceptID")
    scientific_name: Optional[str] = Field(None, alias="scientificName")


# =============================================================================
# MediaWiki (Wikispecies, Wikipedia, Wikimedia Commons)
# =============================================================================


class WikiSearchHit(ProviderPayload):
    title: str
    pageid: Optional[int] = None
    size: Optional[int] = None
    wordcount: Optional[int] = None


class WikiSearchQuery(ProviderPayload):
    search: List[WikiSearchHit] = Field(default_factory=list)


class WikiSearchResponse(ProviderPayload):
    query: WikiSearchQuery = Field(default_factory=WikiSearchQuery)


class WikiPageInfo(ProviderPayload):
    title: str
    pageid: Optional[int] = None
    missing: bool = False
    invalid: bool = False


class WikiPagesQuery(ProviderPayload):
    pages: List[WikiPageInfo] = Field(default_factory=list)


class WikiPagesResponse(ProviderPayload):
    query: WikiPagesQuery = Field(default_factory=WikiPagesQuery)


# =============================================================================
# IUCN Red List (API v3)
# =============================================================================


class IucnSpecies(ProviderPayload):
    taxonid: int
    scientific_name: str
    kingdom: Optional[str] = None
    family: Optional[str] = None
    taxonomic_authority: Optional[str] = None
    category: Optional[str] = None
    main_common_name: Optional[str] = None
    infra_rank: Optional[str] = None


class IucnSpeciesResponse(ProviderPayload):
    name: Optional[Union[int, str]] = None
    result: List[IucnSpecies] = Field(default_factory=list)


class IucnAssessment(ProviderPayload):
    year: Optional[str] = None
    code: Optional[str] = None
    category: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class IucnHistoryResponse(ProviderPayload):
    result: List[IucnAssessment] = Field(default_factory=list)


class IucnCountry(ProviderPayload):
    code: Optional[str] = None
    country: str
    presence: Optional[str] = None
    origin: Optional[str] = None
    distribution_code: Optional[str] = None


class IucnCountriesResponse(ProviderPayload):
    count: Optional[int] = None
    result: List[IucnCountry] = Field(default_factory=list)
