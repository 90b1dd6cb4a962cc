"""Page fetcher used by the ``POST /convert`` endpoint.

The direct URL is tried first, then every configured relay endpoint in
order, each with its own timeout. There is no backoff: a failed endpoint
is simply followed by the next one.
"""

import ipaddress
import logging
import socket
from typing import List, Tuple
from urllib.parse import quote, urljoin, urlparse

import httpx

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https"}
USER_AGENT = "Mozilla/5.0 (compatible; PageConverter/1.0)"


class PageTooLarge(RuntimeError):
    """The response body exceeds the configured size cap."""


class FetchError(RuntimeError):
    """Every fetch endpoint failed.

    ``attempts`` lists ``(endpoint, reason)`` pairs in the order tried.
    """

    def __init__(self, url: str, attempts: List[Tuple[str, str]]) -> None:
        self.url = url
        self.attempts = attempts
        reasons = "; ".join(f"{endpoint}: {reason}" for endpoint, reason in attempts)
        super().__init__(f"Could not fetch {url} ({reasons})")


def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address."""
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = info[4][0].split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


def _validate_url(url: str) -> None:
    """Raise ValueError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname.")

    if _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


def fetch_endpoints(url: str, settings: Settings) -> List[str]:
    """Return the ordered list of endpoints used to fetch *url*."""
    encoded = quote(url, safe="")
    return [url] + [f"{prefix}{encoded}" for prefix in settings.relay_endpoints]


def _decode(body: bytes, charset: str) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


async def _fetch_endpoint(client: httpx.AsyncClient, endpoint: str, settings: Settings) -> str:
    """Fetch one endpoint, validating every redirect hop.

    Raises:
        ValueError: if a hop fails SSRF / scheme validation.
        httpx.HTTPError: on network or HTTP errors.
        PageTooLarge: if the body exceeds ``settings.max_upload_bytes``.
        RuntimeError: on too many redirects.
    """
    current_url = endpoint
    limit = settings.max_upload_bytes
    for _ in range(settings.max_redirects + 1):
        _validate_url(current_url)
        async with client.stream("GET", current_url) as response:
            if response.is_redirect:
                location = response.headers.get("location", "")
                current_url = urljoin(current_url, location)
                continue

            response.raise_for_status()

            content_length = response.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > limit:
                raise PageTooLarge("Response body exceeds the maximum allowed size.")

            chunks = []
            total = 0
            async for chunk in response.aiter_bytes():
                total += len(chunk)
                if total > limit:
                    raise PageTooLarge("Response body exceeds the maximum allowed size.")
                chunks.append(chunk)

            return _decode(b"".join(chunks), response.charset_encoding)

    raise RuntimeError("Too many redirects.")


async def fetch_page(url: str) -> str:
    """Fetch *url* and return the page as text.

    Raises:
        ValueError: if the URL (or a redirect target) fails validation.
        PageTooLarge: if the page exceeds the size cap.
        FetchError: if every endpoint failed.
    """
    settings = get_settings()
    _validate_url(url)

    attempts: List[Tuple[str, str]] = []
    async with httpx.AsyncClient(
        follow_redirects=False,
        timeout=settings.fetch_timeout,
        headers={"User-Agent": USER_AGENT},
    ) as client:
        for endpoint in fetch_endpoints(url, settings):
            try:
                return await _fetch_endpoint(client, endpoint, settings)
            except PageTooLarge:
                raise
            except (httpx.HTTPError, RuntimeError) as exc:
                reason = str(exc) or type(exc).__name__
                logger.warning("Fetch attempt failed for %s: %s", endpoint, reason)
                attempts.append((endpoint, reason))

    raise FetchError(url, attempts)
