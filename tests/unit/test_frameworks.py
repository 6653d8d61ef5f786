"""Unit tests for framework name helpers."""

from __future__ import annotations

import pytest

from deepdocs.frameworks import (
    canonical_framework,
    framework_from_url,
    identifier_from_url,
    is_documentation_link,
)


class TestCanonicalFramework:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("uikit", "UIKit"),
            ("UIKIT", "UIKit"),
            ("  SwiftUI ", "SwiftUI"),
            ("core-data", "CoreData"),
            ("Core Data", "CoreData"),
            ("av_foundation", "AVFoundation"),
        ],
    )
    def test_known_names(self, raw: str, expected: str) -> None:
        assert canonical_framework(raw) == expected

    def test_unknown_name_kept(self) -> None:
        assert canonical_framework(" HealthKit ") == "HealthKit"

    def test_empty(self) -> None:
        assert canonical_framework(None) == ""
        assert canonical_framework("") == ""


class TestUrlHelpers:
    def test_framework_from_url(self) -> None:
        url = "https://developer.apple.com/documentation/uikit/uialertcontroller"
        assert framework_from_url(url) == "UIKit"

    def test_framework_from_non_documentation_url(self) -> None:
        assert framework_from_url("https://developer.apple.com/videos/") == ""

    def test_identifier_from_url(self) -> None:
        url = "https://developer.apple.com/documentation/uikit/uialertaction/"
        assert identifier_from_url(url) == "uialertaction"

    def test_identifier_is_unquoted(self) -> None:
        url = "https://developer.apple.com/documentation/swift/array/append(_%3A)"
        assert identifier_from_url(url) == "append(_:)"

    def test_identifier_from_empty_path(self) -> None:
        assert identifier_from_url("https://developer.apple.com") == ""

    def test_is_documentation_link(self) -> None:
        assert is_documentation_link("/documentation/uikit/uiview") is True
        assert is_documentation_link("/videos/play/wwdc2023") is False
