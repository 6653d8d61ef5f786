"""HTML field extraction for documentation pages.

Turns raw page bytes into ``PageFields``. Each field is looked up through a
short list of CSS selectors; whatever is missing is left empty and filled
with defaults when the orchestrator builds the cache entry. Lists are capped
here so oversized pages can never blow the fan-out bound downstream.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup

from deepdocs.errors import ErrorCode, ParseError
from deepdocs.frameworks import canonical_framework, framework_from_url, is_documentation_link
from deepdocs.models.page import MethodInfo, PageFields, PropertyInfo

if TYPE_CHECKING:
    from bs4 import Tag

    from deepdocs.models.page import PageKind

DEFAULT_BASE_URL = "https://developer.apple.com"

MAX_CODE_EXAMPLES = 3
MAX_MEMBERS = 10
MAX_RELATED_LINKS = 10
MIN_EXAMPLE_LENGTH = 10
MAX_NAME_LENGTH = 100

_TITLE = "h1.title, h1"
_FRAMEWORK = ".framework-name, .badge"
_KIND = ".api-type, .declaration-type"
_DESCRIPTION = ".description, .abstract, .summary"
_AVAILABILITY = ".availability, .platform-info"
_DEPRECATED_MARKER = '.deprecated, .deprecation-warning, [class*="deprecated"]'
_DEPRECATED_TEXT = ".deprecated, .deprecation-warning"
_CODE = "pre code, .code-listing, .code-sample"
_PROPERTY_ROWS = ".properties-table tr, .property-list .property, .declaration-list .property"
_METHOD_ROWS = ".methods-table tr, .method-list .method, .declaration-list .method"
_RELATED = ".related-links a, .see-also a, .topics a, .relationships a"
_SEARCH_RESULT = ".search-result"
_INDEX_SYMBOLS = ".symbol-name, .api-name, .declaration-name"

# Leading words of the declaration-type label → page kind
_KIND_WORDS: dict[str, PageKind] = {
    "class": "class",
    "protocol": "protocol",
    "struct": "struct",
    "structure": "struct",
    "enum": "enum",
    "enumeration": "enum",
    "func": "function",
    "function": "function",
    "method": "function",
}


def _soup(content: bytes | str) -> BeautifulSoup:
    return BeautifulSoup(content, "html.parser")


def _text(node: BeautifulSoup | Tag, selector: str) -> str:
    found = node.select_one(selector)
    return found.get_text(" ", strip=True) if found is not None else ""


def _absolute(href: str, base_url: str) -> str:
    return urldefrag(urljoin(base_url, href))[0]


def parse_kind(label: str) -> PageKind:
    """Map a declaration-type label such as ``"Structure"`` onto a page kind."""
    for word in label.lower().split():
        kind = _KIND_WORDS.get(word)
        if kind is not None:
            return kind
    return "unknown"


def parse_page(
    content: bytes | str, url: str = "", *, base_url: str = DEFAULT_BASE_URL
) -> PageFields:
    """Extract structured fields from a documentation page.

    Raises ``ParseError`` when the page has no usable title; every other
    field is optional.
    """
    soup = _soup(content)

    title = _text(soup, _TITLE)
    if not title:
        raise ParseError(
            code=ErrorCode.PAGE_UNPARSEABLE,
            message=f"No title found on page {url or '<unknown>'}",
            suggestion="The page may not be an API reference page.",
            recoverable=False,
        )

    framework = canonical_framework(_text(soup, _FRAMEWORK)) or framework_from_url(url)

    is_deprecated = soup.select_one(_DEPRECATED_MARKER) is not None
    deprecation_text = _text(soup, _DEPRECATED_TEXT) if is_deprecated else ""

    return PageFields(
        url=url,
        title=title,
        kind=parse_kind(_text(soup, _KIND)),
        framework=framework,
        description=_text(soup, _DESCRIPTION),
        availability=_text(soup, _AVAILABILITY),
        is_deprecated=is_deprecated,
        deprecation_text=deprecation_text,
        code_examples=_code_examples(soup),
        properties=_properties(soup),
        methods=_methods(soup),
        related_links=related_links(soup, base_url=url or base_url),
    )


def _code_examples(soup: BeautifulSoup) -> list[str]:
    examples: list[str] = []
    for elem in soup.select(_CODE):
        code = elem.get_text().strip()
        if len(code) > MIN_EXAMPLE_LENGTH and code not in examples:
            examples.append(code)
        if len(examples) == MAX_CODE_EXAMPLES:
            break
    return examples


def _properties(soup: BeautifulSoup) -> list[PropertyInfo]:
    properties: list[PropertyInfo] = []
    for row in soup.select(_PROPERTY_ROWS):
        name = _text(row, ".property-name, .name, .declaration-name")
        if not name or len(name) >= MAX_NAME_LENGTH:
            continue
        properties.append(
            PropertyInfo(
                name=name,
                type=_text(row, ".property-type, .type, .declaration-type"),
                description=_text(row, ".property-description, .description, .summary"),
                is_deprecated=row.select_one('.deprecated, [class*="deprecated"]') is not None,
            )
        )
        if len(properties) == MAX_MEMBERS:
            break
    return properties


def _methods(soup: BeautifulSoup) -> list[MethodInfo]:
    methods: list[MethodInfo] = []
    for row in soup.select(_METHOD_ROWS):
        name = _text(row, ".method-name, .name, .declaration-name")
        if not name or len(name) >= MAX_NAME_LENGTH:
            continue
        methods.append(
            MethodInfo(
                name=name,
                signature=_text(row, ".method-signature, .signature, .declaration"),
                description=_text(row, ".method-description, .description, .summary"),
                parameters=_parameter_names(row),
                return_type=_text(row, ".return-type") or "Void",
                is_deprecated=row.select_one('.deprecated, [class*="deprecated"]') is not None,
            )
        )
        if len(methods) == MAX_MEMBERS:
            break
    return methods


def _parameter_names(row: Tag) -> list[str]:
    names = (p.get_text(strip=True) for p in row.select(".parameter-name"))
    return [name for name in names if name]


def related_links(soup: BeautifulSoup, *, base_url: str = DEFAULT_BASE_URL) -> list[str]:
    """Collect deduplicated absolute documentation links from the related sections."""
    links: list[str] = []
    for anchor in soup.select(_RELATED):
        href = anchor.get("href")
        if not isinstance(href, str) or not is_documentation_link(href):
            continue
        absolute = _absolute(href, base_url)
        if absolute not in links:
            links.append(absolute)
        if len(links) == MAX_RELATED_LINKS:
            break
    return links


def first_search_result(content: bytes | str, *, base_url: str = DEFAULT_BASE_URL) -> str | None:
    """Return the absolute URL of the first result on a search results page."""
    result = _soup(content).select_one(_SEARCH_RESULT)
    if result is None:
        return None
    anchor = result.select_one("a[href]")
    if anchor is None:
        return None
    href = anchor.get("href")
    if not isinstance(href, str) or not href.strip():
        return None
    return _absolute(href.strip(), base_url)


def index_symbol_link(
    content: bytes | str, identifier: str, *, base_url: str = DEFAULT_BASE_URL
) -> str | None:
    """Find the first symbol on a framework index page whose name contains ``identifier``."""
    needle = identifier.lower()
    for symbol in _soup(content).select(_INDEX_SYMBOLS):
        name = symbol.get_text(strip=True)
        if needle not in name.lower():
            continue
        anchor = symbol if symbol.name == "a" else symbol.find_parent("a")
        if anchor is None:
            continue
        href = anchor.get("href")
        if isinstance(href, str) and href.strip():
            return _absolute(href.strip(), base_url)
    return None
