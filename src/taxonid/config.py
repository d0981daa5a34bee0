"""Configuration for TaxonID.

Credentials and provider settings live on an explicit ``Config`` object that
callers pass to providers and resolvers. Nothing in the library reads the
environment on its own; ``Config.from_env`` is the one place that does, and
only when a caller (such as the CLI) asks for it.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from taxonid import __version__
from taxonid.exceptions import MissingCredentialError

# Environment variables consulted by Config.from_env
ENV_VARS = {
    "eol_key": "EOL_KEY",
    "iucn_key": "IUCN_REDLIST_KEY",
}

WIKI_SITES = ("species", "pedia", "commons")
OUTPUT_FORMATS = ("csv", "parquet")


@dataclass(frozen=True)
class Config:
    """Settings shared by providers, the resolver and the CLI."""

    # Encyclopedia of Life API key (optional for the public endpoints)
    eol_key: Optional[str] = None

    # IUCN Red List API token (required by the IUCN provider)
    iucn_key: Optional[str] = None

    # Wiki flavour: species, pedia or commons
    wiki_site: str = "species"

    # Language subdomain used when wiki_site is "pedia"
    wiki_lang: str = "en"

    # Maximum number of wiki search hits requested per name
    wiki_limit: int = 100

    # Default timeout in seconds applied to every HTTP request
    timeout: float = 30.0

    user_agent: str = f"taxonid/{__version__}"

    # Number of names resolved concurrently (1 means sequential)
    max_workers: int = 1

    # Number of detail lookups run concurrently per name
    detail_workers: int = 1

    output_format: str = "csv"

    def __post_init__(self):
        if self.wiki_site not in WIKI_SITES:
            raise ValueError(f"wiki_site must be one of {WIKI_SITES}, got '{self.wiki_site}'")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got '{self.output_format}'")
        if self.max_workers < 1 or self.detail_workers < 1:
            raise ValueError("max_workers and detail_workers must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "Config":
        """Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)
            **overrides: Explicit values that take precedence over the environment

        Returns:
            A new Config
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for attr, env_var in ENV_VARS.items():
            if environ.get(env_var):
                values[attr] = environ[env_var]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls().update(values)

    def update(self, config_dict: Dict[str, Any]) -> "Config":
        """Return a copy with the given parameters replaced.

        Args:
            config_dict: Dictionary of configuration parameters to update

        Raises:
            ValueError: If a key is not a known configuration parameter
        """
        known = {f.name for f in fields(self)}
        for key in config_dict:
            if key not in known:
                raise ValueError(f"Unknown configuration parameter: {key}")
        return replace(self, **config_dict)

    def require(self, attr: str) -> str:
        """Return a credential, raising if it is not set."""
        value = getattr(self, attr)
        if not value:
            raise MissingCredentialError(attr, ENV_VARS.get(attr))
        return value

    def get_config_summary(self) -> str:
        """Return a human-readable summary with credentials masked."""
        lines = ["TaxonID configuration:"]
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in ENV_VARS:
                value = "<set>" if value else "<unset>"
            lines.append(f"  {f.name}: {value}")
        return "\n".join(lines)
