"""Framework name normalisation and documentation URL helpers.

Framework names arrive in many spellings (URL path segments, badge text,
user input). ``canonical_framework`` maps them onto one display name through
a static table so cache keys and metadata stay consistent.
"""

from __future__ import annotations

import re
from urllib.parse import unquote, urlparse

# lowercase token → canonical display name
FRAMEWORK_DISPLAY_NAMES: dict[str, str] = {
    "foundation": "Foundation",
    "uikit": "UIKit",
    "swiftui": "SwiftUI",
    "combine": "Combine",
    "coredata": "CoreData",
    "avfoundation": "AVFoundation",
    "mapkit": "MapKit",
    "pencilkit": "PencilKit",
    "arkit": "ARKit",
    "coreml": "CoreML",
    "appkit": "AppKit",
    "corelocation": "CoreLocation",
    "swiftdata": "SwiftData",
    "swift": "Swift",
}

# Framework index pages scanned when search yields no result and no framework was given.
DEFAULT_INDEX_FRAMEWORKS: tuple[str, ...] = (
    "foundation",
    "uikit",
    "swiftui",
    "combine",
    "coredata",
)

_DOC_PATH_RE = re.compile(r"/documentation/([^/?#]+)(?:/([^?#]*))?")


def canonical_framework(name: str | None) -> str:
    """Return the canonical display name for a framework token.

    Unknown names are returned stripped but otherwise unchanged; ``None`` and
    blank input map to ``""``.
    """
    if not name:
        return ""
    stripped = name.strip()
    token = re.sub(r"[\s_-]", "", stripped).lower()
    return FRAMEWORK_DISPLAY_NAMES.get(token, stripped)


def framework_from_url(url: str) -> str:
    """Extract the framework segment of a ``/documentation/<framework>/...`` URL."""
    match = _DOC_PATH_RE.search(urlparse(url).path)
    if match is None:
        return ""
    return canonical_framework(unquote(match.group(1)))


def identifier_from_url(url: str) -> str:
    """Return the last path segment of a documentation URL.

    ``https://developer.apple.com/documentation/uikit/uialertaction`` →
    ``"uialertaction"``. Framework index URLs yield the framework segment.
    """
    path = urlparse(url).path.rstrip("/")
    if not path:
        return ""
    return unquote(path.rsplit("/", 1)[-1])


def is_documentation_link(href: str) -> bool:
    return "/documentation/" in href
