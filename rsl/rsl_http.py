import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from rsl.rsl_datatypes import Error
from rsl.rsl_native import NativeRegistration, expect_args, rsl_native

logger = logging.getLogger(__name__)

# Failures that happen before a request reaches the server; only these are
# retried for methods that are not idempotent.
_CONNECT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)
_IDEMPOTENT = {"GET", "HEAD", "OPTIONS", "PUT", "DELETE"}


@dataclass(frozen=True)
class HTTPSettings:
    timeout: float = 5.0
    retries: int = 0
    backoff: float = 0.2
    follow_redirects: bool = True

    @classmethod
    def from_config(cls, config) -> 'HTTPSettings':
        return cls(
            timeout=config.http_timeout,
            retries=config.http_retries,
            follow_redirects=config.follow_redirects,
        )


DEFAULT_SETTINGS = HTTPSettings()


def http_request(method: str, url: str, *, data: Optional[str] = None,
                 headers: Optional[Dict[str, str]] = None,
                 settings: HTTPSettings = DEFAULT_SETTINGS) -> Any:
    """
    Core blocking HTTP helper.

    Returns the response body as a string on a 2xx status. Transport
    failures (after the configured retries), non-2xx statuses and bodies
    that cannot be decoded all come back as an ``Error`` value.
    """
    headers = dict(headers or {})
    body = data.encode("utf-8") if data is not None else None
    if body is not None:
        headers.setdefault("Content-Type", "text/plain; charset=utf-8")
    retryable = httpx.TransportError if method in _IDEMPOTENT else _CONNECT_ERRORS

    logger.debug("%s %s", method, url)
    with httpx.Client(timeout=settings.timeout, follow_redirects=settings.follow_redirects) as client:
        for attempt in range(settings.retries + 1):
            try:
                resp = client.request(method, url, headers=headers, content=body)
                break
            except httpx.HTTPError as e:
                if attempt < settings.retries and isinstance(e, retryable):
                    time.sleep(settings.backoff * (2 ** attempt))
                    continue
                logger.debug("%s %s failed: %s", method, url, e)
                return Error(f"{method} {url} failed: {e}")
            except (httpx.InvalidURL, ValueError) as e:
                # Malformed URLs are rejected before any request is sent.
                return Error(f"{method} {url} failed: {e}")

    if not 200 <= resp.status_code < 300:
        preview = (resp.text or "")[:200]
        return Error(f"HTTP {resp.status_code} for {url}: {preview}")
    try:
        return resp.content.decode(resp.encoding or "utf-8")
    except (UnicodeDecodeError, LookupError) as e:
        return Error(f"unreadable response body from {url}: {e}")


def http_get(url: str, settings: HTTPSettings = DEFAULT_SETTINGS) -> Any:
    return http_request("GET", url, settings=settings)


def http_post(url: str, data: str, bearer_token: Optional[str] = None,
              settings: HTTPSettings = DEFAULT_SETTINGS) -> Any:
    headers = {"Authorization": f"Bearer {bearer_token}"} if bearer_token is not None else None
    return http_request("POST", url, data=data, headers=headers, settings=settings)


def http_native_functions(settings: HTTPSettings = DEFAULT_SETTINGS) -> List[NativeRegistration]:
    """The HTTP natives, bound to one interpreter's settings."""
    registry: List[NativeRegistration] = []

    @rsl_native(registry=registry)
    def get_request(arguments: List[Any]) -> Any:
        url = expect_args(arguments, str)
        return http_get(url, settings)

    @rsl_native(registry=registry)
    def post_request(arguments: List[Any]) -> Any:
        url, body = expect_args(arguments, str, str)
        return http_post(url, body, settings=settings)

    @rsl_native(registry=registry)
    def post_request_with_bearer_token(arguments: List[Any]) -> Any:
        url, body, bearer_token = expect_args(arguments, str, str, str)
        return http_post(url, body, bearer_token, settings=settings)

    return registry
