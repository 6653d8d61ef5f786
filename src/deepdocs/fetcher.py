"""Documentation page retrieval over HTTP, restricted to the documentation host.

All network I/O for documentation pages goes through a single Fetcher
instance. The Fetcher receives an httpx.AsyncClient via constructor
injection; the server lifespan owns the client lifecycle.

Every failure surfaces as ``FetchError``; callers decide whether that is
fatal (it never is inside the retrieval core). There is no retry logic.
"""

from __future__ import annotations

import ipaddress
from typing import TYPE_CHECKING
from urllib.parse import urlencode, urljoin, urlparse

import httpx
import structlog

from deepdocs.errors import ErrorCode, FetchError
from deepdocs.frameworks import DEFAULT_INDEX_FRAMEWORKS
from deepdocs.models.page import FetchedPage
from deepdocs.parser import first_search_result, index_symbol_link

if TYPE_CHECKING:
    from deepdocs.config import FetcherSettings

log = structlog.get_logger()

PRIVATE_NETWORKS: list[ipaddress.IPv4Network | ipaddress.IPv6Network] = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
]


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Build the single httpx client shared by every Fetcher call."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.detail_timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=4,
            max_keepalive_connections=2,
        ),
    )


def _base_domain(hostname: str) -> str:
    """Return the last two DNS labels: ``'developer.apple.com'`` → ``'apple.com'``."""
    parts = hostname.rstrip(".").split(".")
    return ".".join(parts[-2:]) if len(parts) >= 2 else hostname


def build_allowlist(*urls: str) -> frozenset[str]:
    """Build the SSRF domain allowlist from the documentation host URL(s)."""
    base_domains: set[str] = set()
    for url in urls:
        hostname = urlparse(url).hostname or ""
        if hostname:
            base_domains.add(_base_domain(hostname))
    return frozenset(base_domains)


def is_url_allowed(url: str, allowlist: frozenset[str]) -> bool:
    """Return True when the URL is http(s) and its base domain is allowlisted.

    Literal private or loopback addresses are always rejected.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    hostname = parsed.hostname or ""

    # Literal IPs in private ranges
    try:
        addr = ipaddress.ip_address(hostname)
        if any(addr in net for net in PRIVATE_NETWORKS):
            return False
    except ValueError:
        pass  # domain name, checked against the allowlist below

    return _base_domain(hostname) in allowlist


class Fetcher:
    """Documentation page fetcher implementing FetcherProtocol."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://developer.apple.com",
        detail_timeout: float = 10.0,
        discovery_timeout: float = 8.0,
        max_redirects: int = 3,
        allowlist: frozenset[str] | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._detail_timeout = detail_timeout
        self._discovery_timeout = discovery_timeout
        self._max_redirects = max_redirects
        self.allowlist = allowlist if allowlist is not None else build_allowlist(self._base_url)

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: FetcherSettings) -> Fetcher:
        return cls(
            client,
            base_url=settings.base_url,
            detail_timeout=settings.detail_timeout_seconds,
            discovery_timeout=settings.discovery_timeout_seconds,
            max_redirects=settings.max_redirects,
        )

    def search_url(self, identifier: str, framework: str | None = None) -> str:
        params = {"q": identifier, "type": "documentation"}
        if framework:
            params["framework"] = framework.lower()
        return f"{self._base_url}/search/?{urlencode(params)}"

    def index_url(self, framework: str) -> str:
        return f"{self._base_url}/documentation/{framework.lower()}"

    async def fetch(self, url: str) -> FetchedPage:
        """Fetch a documentation detail page."""
        return await self._get(url, timeout=self._detail_timeout)

    async def search(self, identifier: str, framework: str | None = None) -> FetchedPage:
        """Locate and fetch the primary page for an identifier.

        Tries the search endpoint first and follows its first result. When the
        search request fails or yields no result, scans framework index pages
        for a symbol whose name contains the identifier. Raises ``FetchError``
        with ``PAGE_NOT_FOUND`` when nothing matches.
        """
        search_url = self.search_url(identifier, framework)
        try:
            results_page = await self._get(search_url, timeout=self._detail_timeout)
            detail_url = first_search_result(results_page.content, base_url=self._base_url)
        except FetchError as exc:
            log.info("search_failed_trying_index", identifier=identifier, reason=exc.message)
            detail_url = None

        if detail_url is None:
            detail_url = await self._find_in_indexes(identifier, framework)

        if detail_url is None:
            raise FetchError(
                code=ErrorCode.PAGE_NOT_FOUND,
                message=f"No documentation page found for {identifier!r}",
                suggestion="Check the identifier spelling or pass a framework.",
                recoverable=False,
            )

        return await self.fetch(detail_url)

    async def _find_in_indexes(self, identifier: str, framework: str | None) -> str | None:
        frameworks = [framework] if framework else list(DEFAULT_INDEX_FRAMEWORKS)
        for name in frameworks:
            try:
                index_page = await self._get(self.index_url(name), timeout=self._discovery_timeout)
            except FetchError:
                log.debug("index_fetch_failed", framework=name, exc_info=True)
                continue
            link = index_symbol_link(index_page.content, identifier, base_url=self._base_url)
            if link is not None:
                return link
        return None

    async def _get(self, url: str, *, timeout: float) -> FetchedPage:
        """GET a URL with per-hop SSRF validation.

        Returns the body and final URL on success. Raises FetchError on SSRF
        violations, network errors, timeouts and non-2xx responses.
        """
        current_url = url

        try:
            for hop in range(self._max_redirects + 1):
                if not is_url_allowed(current_url, self.allowlist):
                    log.warning("ssrf_blocked", url=current_url, reason="not_in_allowlist")
                    raise FetchError(
                        code=ErrorCode.URL_NOT_ALLOWED,
                        message=f"URL not in allowlist: {current_url}",
                        suggestion="Only URLs on the documentation host are fetched.",
                        recoverable=False,
                    )

                response = await self._client.get(current_url, timeout=timeout)

                if response.is_redirect and "location" in response.headers:
                    if hop == self._max_redirects:
                        raise FetchError(
                            code=ErrorCode.PAGE_FETCH_FAILED,
                            message=f"Too many redirects fetching {url}",
                            suggestion="The documentation URL redirects too many times.",
                            recoverable=False,
                        )
                    current_url = urljoin(current_url, response.headers["location"])
                    continue

                if not response.is_success:
                    if response.status_code == 404:
                        raise FetchError(
                            code=ErrorCode.PAGE_NOT_FOUND,
                            message=f"HTTP 404 fetching {url}",
                            suggestion="No documentation page exists at this URL.",
                            recoverable=False,
                        )
                    raise FetchError(
                        code=ErrorCode.PAGE_FETCH_FAILED,
                        message=f"HTTP {response.status_code} fetching {url}",
                        suggestion="The documentation source may be temporarily unavailable.",
                        recoverable=True,
                    )

                log.info(
                    "fetch_complete",
                    url=url,
                    status_code=response.status_code,
                    content_length=len(response.content),
                )
                return FetchedPage(url=current_url, content=response.content)

        except FetchError:
            raise
        except httpx.HTTPError as exc:
            raise FetchError(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=f"Network error fetching {url}: {exc}",
                suggestion="The documentation source may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        # The loop always returns or raises
        raise FetchError(
            code=ErrorCode.PAGE_FETCH_FAILED,
            message="Redirect loop",
            suggestion="",
            recoverable=False,
        )
