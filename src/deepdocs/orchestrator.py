"""Cache-first retrieval with one-hop related-link expansion.

Resolution order for a seed identifier:
  1. Durable cache hit on (framework, identifier) → return it plus up to
     ``max_cached_related`` of its related identifiers that are also cached.
     No network access on this path.
  2. Otherwise search-fetch the primary page, parse it, persist it.
  3. Expand the primary page's related links (at most ``max_related``) from
     a work list built once and processed in a single loop, sequentially.
     Entries produced here are never expanded further.

Every entry produced by one call is stored under the call's effective
framework (the caller's, canonicalised, else the primary page's), and the
primary entry under the requested identifier, so an identical second call
short-circuits at step 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from deepdocs.cache import TransientLayer, sanitize_key
from deepdocs.errors import DeepDocsError
from deepdocs.frameworks import canonical_framework, identifier_from_url
from deepdocs.models.cache import CacheEntry, DeprecationInfo
from deepdocs.parser import parse_page

if TYPE_CHECKING:
    from deepdocs.config import CrawlSettings
    from deepdocs.models.page import PageFields
    from deepdocs.protocols import CacheProtocol, FetcherProtocol, ParserProtocol

log = structlog.get_logger()

DEFAULT_DESCRIPTION = "No description available"
DEFAULT_AVAILABILITY = "iOS 13.0+"
DEFAULT_KIND = "class"
DEFAULT_DEPRECATION_REASON = "This API is deprecated"
DEFAULT_DEPRECATION_ALTERNATIVE = "Check the framework documentation for alternatives"
UNKNOWN_FRAMEWORK = "Unknown"


class RetrievalOrchestrator:
    """Resolves an identifier to documentation records. Never raises."""

    def __init__(
        self,
        cache: CacheProtocol,
        fetcher: FetcherProtocol,
        *,
        parser: ParserProtocol = parse_page,
        transient: TransientLayer | None = None,
        max_related: int = 10,
        max_cached_related: int = 5,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._parser = parser
        self._transient = transient if transient is not None else TransientLayer()
        self._max_related = max_related
        self._max_cached_related = max_cached_related

    @classmethod
    def from_settings(
        cls, cache: CacheProtocol, fetcher: FetcherProtocol, settings: CrawlSettings
    ) -> RetrievalOrchestrator:
        return cls(
            cache,
            fetcher,
            max_related=settings.max_related,
            max_cached_related=settings.max_cached_related,
        )

    def clear_transient(self) -> None:
        self._transient.clear()

    async def resolve(self, identifier: str, framework: str | None = None) -> list[CacheEntry]:
        """Resolve one identifier. Returns whatever was resolved before any failure."""
        results: list[CacheEntry] = []
        try:
            await self._resolve_into(results, identifier, canonical_framework(framework))
        except Exception:
            log.error(
                "resolve_unexpected_error",
                identifier=identifier,
                framework=framework,
                resolved=len(results),
                exc_info=True,
            )
        return results

    async def _resolve_into(
        self, results: list[CacheEntry], identifier: str, framework: str
    ) -> None:
        rlog = log.bind(identifier=identifier, framework=framework or None)

        # Step 1: cache-only path
        if framework:
            primary = self._cache.get(framework, identifier)
            if primary is not None:
                results.append(primary)
                for related_id in primary.related[: self._max_cached_related]:
                    hit = self._cache.get(framework, related_id)
                    if hit is not None:
                        results.append(hit)
                rlog.info("resolve_cache_hit", records=len(results))
                return

        # Step 2: primary page
        try:
            page = await self._fetcher.search(identifier, framework or None)
            fields = self._parser(page.content, page.url)
        except DeepDocsError as exc:
            rlog.info("resolve_miss", code=exc.code, reason=exc.message)
            return

        effective_framework = framework or fields.framework or UNKNOWN_FRAMEWORK
        work_list = self._related_work_list(fields, exclude=identifier)
        primary = build_entry(
            fields,
            identifier=identifier,
            framework=effective_framework,
            related=[related_id for related_id, _ in work_list],
        )
        self._cache.put(primary)
        self._transient.put(page.url, primary)
        results.append(primary)
        fetches = 1

        # Step 3: one hop over the related links
        for related_id, url in work_list:
            try:
                entry = self._lookup_related(related_id, url, effective_framework)
                if entry is None:
                    fetches += 1
                    entry = await self._fetch_related(related_id, url, effective_framework)
            except Exception:
                log.warning("related_failed", url=url, exc_info=True)
                continue
            if entry is not None:
                results.append(entry)

        rlog.info("resolve_complete", records=len(results), fetches=fetches)

    def _lookup_related(self, related_id: str, url: str, framework: str) -> CacheEntry | None:
        """Transient layer by URL, then the durable store by key.

        A transient hit recorded under another key never overwrites an existing
        durable entry for this key.
        """
        entry = self._transient.get(url)
        if entry is None:
            return self._cache.get(framework, related_id)
        renamed = sanitize_key(entry.identifier) != sanitize_key(related_id)
        if renamed or entry.framework != framework:
            durable = self._cache.get(framework, related_id)
            if durable is not None:
                return durable
            # Seen this process under another key only; persist it under this one too.
            entry = entry.model_copy(update={"identifier": related_id, "framework": framework})
            self._cache.put(entry)
        entry.from_cache = True
        log.debug("related_transient_hit", url=url)
        return entry

    async def _fetch_related(self, related_id: str, url: str, framework: str) -> CacheEntry | None:
        try:
            page = await self._fetcher.fetch(url)
            fields = self._parser(page.content, page.url)
        except DeepDocsError as exc:
            log.debug("related_skipped", url=url, code=exc.code, reason=exc.message)
            return None

        entry = build_entry(
            fields,
            identifier=related_id,
            framework=framework,
            related=[rid for rid, _ in self._related_work_list(fields, exclude=related_id)],
        )
        self._cache.put(entry)
        self._transient.put(url, entry)
        return entry

    def _related_work_list(self, fields: PageFields, *, exclude: str) -> list[tuple[str, str]]:
        """Pair each related link with the identifier it names, deduplicated and capped."""
        excluded = sanitize_key(exclude)
        seen: set[str] = set()
        work_list: list[tuple[str, str]] = []
        for url in fields.related_links:
            related_id = identifier_from_url(url)
            key = sanitize_key(related_id)
            if not related_id or key == excluded or key in seen:
                continue
            seen.add(key)
            work_list.append((related_id, url))
            if len(work_list) == self._max_related:
                break
        return work_list


def build_entry(
    fields: PageFields,
    *,
    identifier: str,
    framework: str,
    related: list[str],
) -> CacheEntry:
    """Convert parsed page fields into a cache entry, applying defaults."""
    deprecation = None
    if fields.is_deprecated:
        deprecation = DeprecationInfo(
            reason=fields.deprecation_text or DEFAULT_DEPRECATION_REASON,
            alternative=DEFAULT_DEPRECATION_ALTERNATIVE,
        )

    return CacheEntry(
        identifier=identifier,
        framework=framework,
        title=fields.title,
        kind=fields.kind if fields.kind != "unknown" else DEFAULT_KIND,
        availability=fields.availability or DEFAULT_AVAILABILITY,
        url=fields.url or None,
        description=fields.description or DEFAULT_DESCRIPTION,
        properties=[prop.summary() for prop in fields.properties],
        methods=[method.summary() for method in fields.methods],
        examples=fields.code_examples[:3],
        related=related,
        deprecation=deprecation,
    )
