"""Exception types for TaxonID.

Not-found and ambiguous outcomes are reported through ``MatchStatus`` on the
result, never raised. Only configuration problems and transport failures
surface as exceptions.
"""

from typing import Dict, Optional


class TaxonIDError(Exception):
    """Base class for all TaxonID errors."""


class ConfigurationError(TaxonIDError):
    """Raised when the configuration is unusable for the requested call."""


class MissingCredentialError(ConfigurationError):
    """Raised when a provider requires an API key that was not supplied."""

    def __init__(self, key_name: str, env_var: Optional[str] = None):
        self.key_name = key_name
        self.env_var = env_var
        hint = f" (set it explicitly or export {env_var})" if env_var else ""
        super().__init__(f"Missing required credential '{key_name}'{hint}")


class ProviderError(TaxonIDError):
    """A provider request failed for a single name or identifier."""

    def __init__(self, provider: str, query: str, cause: Exception):
        self.provider = provider
        self.query = query
        self.cause = cause
        super().__init__(f"{provider} request for '{query}' failed: {cause}")


class BatchResolutionError(TaxonIDError):
    """Raised after a strict batch finished with per-name failures.

    The batch is never aborted early; ``results`` holds every slot (failed
    names are ``not_found``) and ``errors`` maps each failed name to the
    error that caused it.
    """

    def __init__(self, results, errors: Dict[str, ProviderError]):
        self.results = results
        self.errors = errors
        names = ", ".join(f"'{name}'" for name in errors)
        super().__init__(f"Resolution failed for {len(errors)} name(s): {names}")
