"""Provider search adapters."""

from typing import Dict, Optional, Type

import requests

from taxonid.config import Config
from taxonid.providers.base import ProviderSearch
from taxonid.providers.eol import EolProvider
from taxonid.providers.iucn import IucnProvider
from taxonid.providers.wiki import WikiProvider

PROVIDERS: Dict[str, Type[ProviderSearch]] = {
    EolProvider.name: EolProvider,
    WikiProvider.name: WikiProvider,
    IucnProvider.name: IucnProvider,
}


def create_provider(
    name: str,
    config: Optional[Config] = None,
    session: Optional[requests.Session] = None,
) -> ProviderSearch:
    """Create a provider adapter by its short name (eol, wiki, iucn)."""
    if name not in PROVIDERS:
        raise ValueError(f"Unknown provider '{name}'. Choose from: {', '.join(PROVIDERS)}")
    return PROVIDERS[name](config, session)


__all__ = ["ProviderSearch", "EolProvider", "WikiProvider", "IucnProvider", "PROVIDERS", "create_provider"]
