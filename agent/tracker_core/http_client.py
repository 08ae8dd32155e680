"""
HTTP session with connection pooling and CA bundle selection.

Adapter-level retries are switched off: every attempt must be visible to
dispatch.send_with_retry, which owns the retry policy.
"""

import os

import certifi
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .constants import API_TIMEOUT_SEC
from .dispatch import PostResponse

_retry_strategy = Retry(total=0, raise_on_status=False)


def _get_ca_bundle():
    """Priority: env var → certifi."""
    env_ca = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")
    if env_ca and os.path.isfile(env_ca):
        return env_ca
    return certifi.where()


def create_session():
    """Create a new requests.Session with connection pooling and SSL."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=2,
        max_retries=_retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = _get_ca_bundle()
    session.headers["Content-Type"] = "application/json"
    return session


def reset_session(session):
    """Close and recreate the HTTP session (fixes stale connections)."""
    try:
        session.close()
    except Exception:
        pass
    return create_session()


# Global shared session
http = create_session()


def post_json(url, payload, timeout=API_TIMEOUT_SEC):
    """
    POST a JSON body. Returns PostResponse; transport failures raise
    requests.RequestException. The message is the error body on 4xx/5xx and
    the reason phrase otherwise.
    """
    global http
    try:
        resp = http.post(url, json=payload, timeout=timeout)
    except requests.ConnectionError:
        http = reset_session(http)
        raise
    message = resp.text if resp.status_code >= 400 else resp.reason
    return PostResponse(resp.status_code, message or "")
