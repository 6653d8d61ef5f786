from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

PageKind = Literal["class", "protocol", "struct", "enum", "function", "unknown"]


class FetchedPage(BaseModel):
    """Raw page body together with the URL it was finally served from."""

    url: str
    content: bytes


class PropertyInfo(BaseModel):
    name: str
    type: str = ""
    description: str = ""
    is_deprecated: bool = False

    def summary(self) -> str:
        return f"{self.name}: {self.type or 'Unknown'}"


class MethodInfo(BaseModel):
    name: str
    signature: str = ""
    description: str = ""
    parameters: list[str] = []
    return_type: str = "Void"
    is_deprecated: bool = False

    def summary(self) -> str:
        return f"{self.name}({', '.join(self.parameters)}): {self.return_type}"


class PageFields(BaseModel):
    """Structured fields extracted from one documentation page.

    Transient: converted into a CacheEntry by the orchestrator and never
    persisted as-is. Empty strings mean "not found on the page"; defaults
    are applied when the entry is built.
    """

    url: str = ""
    title: str
    kind: PageKind = "unknown"
    framework: str = ""
    description: str = ""
    availability: str = ""
    is_deprecated: bool = False
    deprecation_text: str = ""
    code_examples: list[str] = []  # at most 3
    properties: list[PropertyInfo] = []  # at most 10
    methods: list[MethodInfo] = []  # at most 10
    related_links: list[str] = []  # absolute URLs, deduplicated, at most 10
