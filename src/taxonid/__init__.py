"""TaxonID: resolve species names to provider identifiers.

TaxonID searches the Encyclopedia of Life, the IUCN Red List and the
Wikimedia wikis for a free-text name, narrows the hits down to a single
identifier where it can, and reports every outcome with its provenance.
"""

__version__ = "0.1.0"

from taxonid.config import Config
from taxonid.exceptions import (
    BatchResolutionError,
    ConfigurationError,
    MissingCredentialError,
    ProviderError,
    TaxonIDError,
)
from taxonid.types.data_classes import CandidateRecord, MatchStatus, ResolvedId
from taxonid.types.identifiers import (
    EolIds,
    InputShape,
    IucnIds,
    TaxonIds,
    WikiIds,
    ids_from_table,
)
from taxonid.api import (
    as_eolid,
    as_iucn,
    as_wiki,
    get_eolid,
    get_eolid_,
    get_iucn,
    get_iucn_,
    get_wiki,
    get_wiki_,
)
from taxonid.conservation import IucnSummary, iucn_status, iucn_summary, iucn_summary_id

__all__ = [
    "Config",
    "TaxonIDError",
    "ConfigurationError",
    "MissingCredentialError",
    "ProviderError",
    "BatchResolutionError",
    "CandidateRecord",
    "MatchStatus",
    "ResolvedId",
    "TaxonIds",
    "EolIds",
    "WikiIds",
    "IucnIds",
    "InputShape",
    "ids_from_table",
    "get_eolid",
    "get_eolid_",
    "get_wiki",
    "get_wiki_",
    "get_iucn",
    "get_iucn_",
    "as_eolid",
    "as_wiki",
    "as_iucn",
    "IucnSummary",
    "iucn_summary",
    "iucn_summary_id",
    "iucn_status",
]
