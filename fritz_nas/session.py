"""HTTP session management for the FRITZ!Box NAS client."""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import USER_AGENT


def build_session(verify_ssl: bool = True) -> requests.Session:
    """Return a requests.Session with keep-alive and no transport retries.

    The adapter is mounted with ``Retry(total=0)``: no request is retried.
    """
    session = requests.Session()
    retry = Retry(total=0, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = verify_ssl
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Connection": "keep-alive",
    })
    return session


def base_url(address: str) -> str:
    """
    Normalise a device address to a base URL without a trailing slash.

    ``fritz.box`` and ``http://fritz.box/`` both become ``http://fritz.box``.
    """
    address = address.strip().rstrip("/")
    if "://" not in address:
        address = f"http://{address}"
    return address


def endpoint(address: str, path: str) -> str:
    """Join a device address and an endpoint path."""
    return f"{base_url(address)}/{path.lstrip('/')}"
