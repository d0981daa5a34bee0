"""Base class for provider search adapters.

A provider turns a free-text name into candidate records and knows how to
address the records it returned. The resolver drives providers only through
the interface defined here.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Type

import polars as pl
import requests
from pydantic import ValidationError

from taxonid.config import Config
from taxonid.http import create_session
from taxonid.types.data_classes import CandidateRecord, candidates_to_frame
from taxonid.types.identifiers import TaxonIds

logger = logging.getLogger(__name__)

# Failures a provider request can end in
REQUEST_ERRORS = (requests.RequestException, ValidationError, ValueError)


class ProviderSearch:
    """Base class for provider adapters.

    Subclasses set the class attributes below and implement ``search``,
    ``source_uri`` and ``_lookup_uri``. Providers with a detail step also set
    ``needs_detail`` and implement ``fetch_detail``.
    """

    # Short provider name used in logs and the CLI (eol, wiki, iucn)
    name: str = ""

    # What one identifier is called in user-facing messages
    label: str = "id"

    # Identifier collection produced for this provider
    id_class: Type[TaxonIds] = TaxonIds

    # Whether surviving search hits must be expanded with fetch_detail
    needs_detail: bool = False

    # Whether a single exact name match settles an ambiguous result
    exact_match_wins: bool = False

    # Candidate table columns: output column -> CandidateRecord field
    table_columns: Dict[str, str] = {}

    def __init__(self, config: Optional[Config] = None, session: Optional[requests.Session] = None):
        """Initialize the provider.

        Args:
            config: Settings and credentials (defaults to an empty Config)
            session: HTTP session to use; one is created from the config if omitted
        """
        self.config = config or Config()
        self.session = session or create_session(self.config.timeout, self.config.user_agent)

    def validate_config(self) -> None:
        """Raise ``ConfigurationError`` if the provider cannot run with this config."""

    def search(self, name: str) -> List[CandidateRecord]:
        """Search the provider for a name.

        Raises:
            requests.RequestException: If the request fails
            pydantic.ValidationError: If the response cannot be parsed
        """
        raise NotImplementedError("Subclasses must implement search")

    def detail_key(self, candidate: CandidateRecord) -> str:
        """Return the key handed to ``fetch_detail`` for a search hit."""
        return candidate.page_id or candidate.external_id

    def fetch_detail(self, key: str) -> List[CandidateRecord]:
        """Expand one search hit into detailed candidates."""
        raise NotImplementedError(f"{type(self).__name__} has no detail step")

    def prepare(self, candidates: Sequence[CandidateRecord]) -> List[CandidateRecord]:
        """Normalize detailed candidates before row selection."""
        return list(candidates)

    def source_uri(self, candidate: CandidateRecord) -> Optional[str]:
        """Return the page URI of a chosen candidate."""
        raise NotImplementedError("Subclasses must implement source_uri")

    def _lookup_uri(self, identifier: str) -> Optional[str]:
        raise NotImplementedError("Subclasses must implement _lookup_uri")

    def check_uri(self, identifier: str) -> Optional[str]:
        """Confirm an identifier with the provider and return its URI.

        Returns:
            The URI, or None if the identifier does not exist or the lookup failed
        """
        try:
            return self._lookup_uri(identifier)
        except REQUEST_ERRORS as e:
            logger.error(f"Could not check {self.label} '{identifier}' with {self.name}: {e}")
            return None

    def probe_exists(self, identifier: str) -> bool:
        """Return whether the provider knows the identifier."""
        return self.check_uri(identifier) is not None

    def candidate_table(self, candidates: Sequence[CandidateRecord]) -> pl.DataFrame:
        """Build the provider's candidate table, columns in display order."""
        return candidates_to_frame(candidates, self.table_columns)

    def id_attributes(self) -> Dict[str, Any]:
        """Extra attributes for the identifier collection (none by default)."""
        return {}

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a URL and decode the JSON body, raising on HTTP errors."""
        logger.debug(f"GET {url} params={self._loggable(params)}")
        response = self.session.get(url, params=params)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _loggable(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not params:
            return params
        return {k: ("***" if k in ("key", "token") else v) for k, v in params.items()}

    def query_text(self, name: str) -> str:
        """Return the form of ``name`` that hits are matched against."""
        return name

    def _get_json_or_none(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Like ``_get_json`` but return None when the resource does not exist."""
        response = self.session.get(url, params=params)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()
