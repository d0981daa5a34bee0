"""
Shared HTTP session for provider adapters.

Provides a pre-configured ``requests.Session`` with a default timeout and a
package User-Agent. Requests are one-shot: the mounted adapter performs no
retries, so a failed call surfaces immediately to the caller.

Usage::

    from taxonid.http import create_session

    session = create_session(timeout=10)
    resp = session.get("https://eol.org/api/search/1.0.json", params={"q": "Puma"})
    resp.raise_for_status()
"""

import requests
from requests.adapters import HTTPAdapter

from taxonid import __version__

DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_USER_AGENT = f"taxonid/{__version__}"


def create_session(
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> requests.Session:
    """
    Build a ``requests.Session`` with a no-retry adapter mounted.

    Args:
        timeout: Default timeout applied to every request.
        user_agent: Value of the User-Agent header.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=0)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = user_agent

    # Wrap send to inject a default timeout so callers don't need to pass
    # ``timeout=`` on every request.
    _original_send = s.send

    def _send_with_timeout(prepared, **kwargs):
        kwargs.setdefault("timeout", timeout)
        return _original_send(prepared, **kwargs)

    s.send = _send_with_timeout
    return s
