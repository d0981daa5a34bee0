import logging
from typing import Dict, Iterable, List, Optional

import pytest
import requests

from taxonid.config import Config
from taxonid.exceptions import MissingCredentialError
from taxonid.providers.base import ProviderSearch
from taxonid.types.data_classes import CandidateRecord
from taxonid.types.identifiers import EolIds


def rec(external_id, name, source="COL", page_id=None, rank="species"):
    """Shorthand for a candidate record."""
    return CandidateRecord(
        external_id=str(external_id),
        display_name=name,
        source=source,
        rank=rank,
        page_id=None if page_id is None else str(page_id),
    )


class FakeProvider(ProviderSearch):
    """In-memory provider with canned search and detail results."""

    name = "fake"
    label = "fake ID"
    id_class = EolIds
    table_columns = {"id": "external_id", "name": "display_name", "source": "source"}

    def __init__(
        self,
        hits: Optional[Dict[str, List[CandidateRecord]]] = None,
        details: Optional[Dict[str, List[CandidateRecord]]] = None,
        failing: Iterable[str] = (),
        failing_details: Iterable[str] = (),
        known_ids: Optional[Dict[str, str]] = None,
        needs_detail: bool = False,
        exact_match_wins: bool = False,
        requires_key: bool = False,
        config: Optional[Config] = None,
    ):
        super().__init__(config or Config())
        self.hits = hits or {}
        self.details = details or {}
        self.failing = set(failing)
        self.failing_details = set(failing_details)
        self.known_ids = known_ids or {}
        self.needs_detail = needs_detail
        self.exact_match_wins = exact_match_wins
        self.requires_key = requires_key
        self.search_calls: List[str] = []
        self.detail_calls: List[str] = []

    def validate_config(self):
        if self.requires_key and not self.config.eol_key:
            raise MissingCredentialError("eol_key", "EOL_KEY")

    def search(self, name):
        self.search_calls.append(name)
        if name in self.failing:
            raise requests.ConnectionError(f"connection refused for {name}")
        return list(self.hits.get(name, []))

    def fetch_detail(self, key):
        self.detail_calls.append(key)
        if key in self.failing_details:
            raise requests.Timeout(f"timed out fetching {key}")
        return list(self.details.get(key, []))

    def source_uri(self, candidate):
        return f"https://fake.example/taxa/{candidate.external_id}"

    def _lookup_uri(self, identifier):
        if identifier in self.failing:
            raise requests.ConnectionError("connection refused")
        return self.known_ids.get(identifier)


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Routes GET requests by URL to canned payloads.

    A route may be a JSON payload, a FakeResponse, or an exception to raise.
    Unknown URLs answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, params=None, **kwargs):
        self.calls.append((url, dict(params or {})))
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(None, 404)
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(route)

    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def poa_provider():
    """Provider where 'Poa annua' has two candidates and 'Chironomus riparius' one."""
    return FakeProvider(hits={
        "Poa annua": [rec(101, "Poa annua L.", "ITIS"), rec(102, "Poa annua", "COL")],
        "Chironomus riparius": [rec(201, "Chironomus riparius Meigen, 1804", "NCBI")],
    })


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging so caplog keeps seeing package records."""
    yield
    package_logger = logging.getLogger("taxonid")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
