"""Wikispecies, Wikipedia and Wikimedia Commons provider.

Candidates are pages found by the MediaWiki full-text search. Page titles are
the identifiers, with whitespace replaced by underscores as in page URLs.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from taxonid.constants import WIKI_HOSTS
from taxonid.providers.base import ProviderSearch
from taxonid.types.data_classes import CandidateRecord
from taxonid.types.identifiers import WikiIds
from taxonid.types.payloads import WikiPagesResponse, WikiSearchResponse

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s")


def title_to_id(title: str) -> str:
    """Replace each whitespace character in a page title with an underscore."""
    return _WHITESPACE.sub("_", title)


class WikiProvider(ProviderSearch):
    """Search adapter for the MediaWiki API of one Wikimedia project."""

    name = "wiki"
    label = "wiki ID"
    id_class = WikiIds
    exact_match_wins = True
    table_columns = {
        "title": "external_id",
        "size": "size",
        "wordcount": "wordcount",
    }

    @property
    def host(self) -> str:
        return WIKI_HOSTS[self.config.wiki_site].format(lang=self.config.wiki_lang)

    @property
    def api_url(self) -> str:
        return f"https://{self.host}/w/api.php"

    def search(self, name: str) -> List[CandidateRecord]:
        params = {
            "action": "query",
            "list": "search",
            "srsearch": name,
            "srlimit": self.config.wiki_limit,
            "format": "json",
            "formatversion": 2,
        }
        payload = WikiSearchResponse.model_validate(self._get_json(self.api_url, params))
        return [
            CandidateRecord(
                external_id=title_to_id(hit.title),
                display_name=title_to_id(hit.title),
                size=hit.size,
                wordcount=hit.wordcount,
                extra={"wiki_pageid": hit.pageid},
            )
            for hit in payload.query.search
        ]

    def source_uri(self, candidate: CandidateRecord) -> Optional[str]:
        return self.page_uri(candidate.external_id)

    def page_uri(self, title: str) -> str:
        return f"https://{self.host}/wiki/{title_to_id(title)}"

    def _lookup_uri(self, identifier: str) -> Optional[str]:
        params = {
            "action": "query",
            "titles": identifier,
            "format": "json",
            "formatversion": 2,
        }
        payload = WikiPagesResponse.model_validate(self._get_json(self.api_url, params))
        if any(not page.missing and not page.invalid for page in payload.query.pages):
            return self.page_uri(identifier)
        return None

    def id_attributes(self) -> Dict[str, Any]:
        return {"wiki_site": self.config.wiki_site, "wiki_lang": self.config.wiki_lang}
