"""Public functions for resolving and coercing identifiers.

Each ``get_*`` function builds a provider from an explicit ``Config`` and
runs the resolver over a batch of names. The ``get_*_`` variants return every
candidate table instead of a single identifier per name, and the ``as_*``
functions coerce identifiers that are already known.

Example::

    from taxonid import Config, get_eolid

    ids = get_eolid(["Chironomus riparius", "uaudnadndj"], config=Config(), ask=False)
    ids.to_table()
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, Union

import polars as pl
import requests

from taxonid.chooser import InteractiveChooser
from taxonid.config import Config
from taxonid.providers.base import ProviderSearch
from taxonid.providers.eol import EolProvider
from taxonid.providers.iucn import IucnProvider
from taxonid.providers.wiki import WikiProvider
from taxonid.resolver import Resolver
from taxonid.selection import RowSelector
from taxonid.types.identifiers import EolIds, InputShape, IucnIds, WikiIds, as_ids

logger = logging.getLogger(__name__)

Names = Union[str, Iterable[str]]


def _wiki_config(
    config: Optional[Config],
    wiki_site: Optional[str],
    wiki_lang: Optional[str],
    limit: Optional[int],
) -> Config:
    overrides: Dict[str, Any] = {}
    if wiki_site is not None:
        overrides["wiki_site"] = wiki_site
    if wiki_lang is not None:
        overrides["wiki_lang"] = wiki_lang
    if limit is not None:
        overrides["wiki_limit"] = limit
    return (config or Config()).update(overrides)


def _resolve(
    provider: ProviderSearch,
    names: Names,
    ask: bool,
    rows: Optional[RowSelector],
    chooser: Optional[InteractiveChooser],
    max_workers: Optional[int],
    progress_bar: bool,
    strict: bool,
):
    config = provider.config
    resolver = Resolver(provider, chooser=chooser, detail_workers=config.detail_workers)
    return resolver.resolve(
        names,
        ask=ask,
        rows=rows,
        max_workers=max_workers or config.max_workers,
        progress_bar=progress_bar,
        strict=strict,
    )


def _resolve_all(
    provider: ProviderSearch,
    names: Names,
    rows: Optional[RowSelector],
    max_workers: Optional[int],
    progress_bar: bool,
) -> List[Tuple[str, Optional[pl.DataFrame]]]:
    config = provider.config
    resolver = Resolver(provider, detail_workers=config.detail_workers)
    return resolver.resolve_all(
        names,
        rows=rows,
        max_workers=max_workers or config.max_workers,
        progress_bar=progress_bar,
    )


def _coerce(
    provider_class: Type[ProviderSearch],
    value: Any,
    shape: InputShape,
    check: bool,
    config: Optional[Config],
    session: Optional[requests.Session],
):
    provider = provider_class(config, session)
    if check:
        provider.validate_config()
    return as_ids(
        value,
        shape,
        provider.id_class,
        check=check,
        provider=provider,
        **provider.id_attributes(),
    )


# -----------------------------------------------------------------------------
# Encyclopedia of Life
# -----------------------------------------------------------------------------
def get_eolid(
    names: Names,
    config: Optional[Config] = None,
    ask: bool = True,
    rows: Optional[RowSelector] = None,
    chooser: Optional[InteractiveChooser] = None,
    max_workers: Optional[int] = None,
    progress_bar: bool = False,
    strict: bool = False,
    session: Optional[requests.Session] = None,
    **search_options: Any,
) -> EolIds:
    """Resolve names to EOL taxon concept ids.

    Args:
        names: One name or an iterable of names
        config: Settings (the EOL key is optional)
        ask: Ask ``chooser`` when several candidates remain
        rows: Row selector applied to every name's candidates
        chooser: Interactive chooser (defaults to a console prompt)
        max_workers: Names resolved concurrently (defaults to ``config.max_workers``)
        progress_bar: Show a progress bar
        strict: Raise ``BatchResolutionError`` if any search failed
        session: HTTP session to reuse
        **search_options: Extra EOL search parameters (``exact``,
            ``filter_by_string``, ...)

    Returns:
        EolIds with one entry per name, in input order
    """
    provider = EolProvider(config, session, **search_options)
    return _resolve(provider, names, ask, rows, chooser, max_workers, progress_bar, strict)


def get_eolid_(
    names: Names,
    config: Optional[Config] = None,
    rows: Optional[RowSelector] = None,
    max_workers: Optional[int] = None,
    progress_bar: bool = False,
    session: Optional[requests.Session] = None,
    **search_options: Any,
) -> List[Tuple[str, Optional[pl.DataFrame]]]:
    """Return the EOL candidate table of every name (None where nothing was found)."""
    provider = EolProvider(config, session, **search_options)
    return _resolve_all(provider, names, rows, max_workers, progress_bar)


def as_eolid(
    value: Any,
    shape: InputShape,
    check: bool = True,
    config: Optional[Config] = None,
    session: Optional[requests.Session] = None,
) -> EolIds:
    """Coerce known EOL ids, optionally confirming each one with EOL."""
    return _coerce(EolProvider, value, shape, check, config, session)


# -----------------------------------------------------------------------------
# Wikispecies / Wikipedia / Wikimedia Commons
# -----------------------------------------------------------------------------
def get_wiki(
    names: Names,
    config: Optional[Config] = None,
    wiki_site: Optional[str] = None,
    wiki_lang: Optional[str] = None,
    limit: Optional[int] = None,
    ask: bool = True,
    rows: Optional[RowSelector] = None,
    chooser: Optional[InteractiveChooser] = None,
    max_workers: Optional[int] = None,
    progress_bar: bool = False,
    strict: bool = False,
    session: Optional[requests.Session] = None,
) -> WikiIds:
    """Resolve names to wiki page titles.

    ``wiki_site``, ``wiki_lang`` and ``limit`` override the matching
    ``config`` settings for this call.
    """
    provider = WikiProvider(_wiki_config(config, wiki_site, wiki_lang, limit), session)
    return _resolve(provider, names, ask, rows, chooser, max_workers, progress_bar, strict)


def get_wiki_(
    names: Names,
    config: Optional[Config] = None,
    wiki_site: Optional[str] = None,
    wiki_lang: Optional[str] = None,
    limit: Optional[int] = None,
    rows: Optional[RowSelector] = None,
    max_workers: Optional[int] = None,
    progress_bar: bool = False,
    session: Optional[requests.Session] = None,
) -> List[Tuple[str, Optional[pl.DataFrame]]]:
    """Return the wiki candidate table of every name."""
    provider = WikiProvider(_wiki_config(config, wiki_site, wiki_lang, limit), session)
    return _resolve_all(provider, names, rows, max_workers, progress_bar)


def as_wiki(
    value: Any,
    shape: InputShape,
    check: bool = True,
    config: Optional[Config] = None,
    wiki_site: Optional[str] = None,
    wiki_lang: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> WikiIds:
    """Coerce known wiki page titles."""
    config = _wiki_config(config, wiki_site, wiki_lang, None)
    return _coerce(WikiProvider, value, shape, check, config, session)


# -----------------------------------------------------------------------------
# IUCN Red List
# -----------------------------------------------------------------------------
def get_iucn(
    names: Names,
    config: Optional[Config] = None,
    ask: bool = True,
    rows: Optional[RowSelector] = None,
    chooser: Optional[InteractiveChooser] = None,
    max_workers: Optional[int] = None,
    progress_bar: bool = False,
    strict: bool = False,
    session: Optional[requests.Session] = None,
) -> IucnIds:
    """Resolve names to IUCN Red List taxon ids.

    Raises:
        MissingCredentialError: If ``config.iucn_key`` is not set
    """
    provider = IucnProvider(config, session)
    return _resolve(provider, names, ask, rows, chooser, max_workers, progress_bar, strict)


def get_iucn_(
    names: Names,
    config: Optional[Config] = None,
    rows: Optional[RowSelector] = None,
    max_workers: Optional[int] = None,
    progress_bar: bool = False,
    session: Optional[requests.Session] = None,
) -> List[Tuple[str, Optional[pl.DataFrame]]]:
    """Return the IUCN candidate table of every name."""
    provider = IucnProvider(config, session)
    return _resolve_all(provider, names, rows, max_workers, progress_bar)


def as_iucn(
    value: Any,
    shape: InputShape,
    check: bool = True,
    config: Optional[Config] = None,
    session: Optional[requests.Session] = None,
) -> IucnIds:
    """Coerce known IUCN taxon ids.

    Raises:
        MissingCredentialError: If ``check`` is True and no IUCN token is set
    """
    return _coerce(IucnProvider, value, shape, check, config, session)
