"""Tests for license identification and classification."""

from __future__ import annotations

import pytest

from bundlekit.engines.license_aggregator.classifier import (
    detect_license_text,
    detect_readme_license,
    is_permissive,
    license_from_package,
    normalize_repository,
)

_FILLER = "This program is distributed in the hope that it will be useful. " * 10


class TestLicenseFromPackage:
    def test_string(self):
        assert license_from_package({"license": "MIT"}) == "MIT"

    def test_object_form(self):
        assert license_from_package({"license": {"type": "BSD-3-Clause"}}) == "BSD-3-Clause"

    def test_legacy_single(self):
        assert license_from_package({"licenses": [{"type": "ISC", "url": "x"}]}) == "ISC"

    def test_legacy_multiple_becomes_or_expression(self):
        pkg = {"licenses": [{"type": "MIT"}, {"type": "Apache-2.0"}]}
        assert license_from_package(pkg) == "(MIT OR Apache-2.0)"

    def test_see_license_in_defers_to_files(self):
        assert license_from_package({"license": "SEE LICENSE IN LICENSE.md"}) is None

    def test_nothing_declared(self):
        assert license_from_package({"name": "x"}) is None

    def test_blank_string(self):
        assert license_from_package({"license": "  "}) is None


class TestDetectLicenseText:
    def test_mit(self):
        text = "Copyright (c) x\n\nPermission is hereby granted, free of\ncharge, to any person"
        assert detect_license_text(text) == "MIT"

    def test_isc(self):
        text = (
            "ISC License\n\nPermission to use, copy, modify, and/or distribute this software\n"
            "for any purpose with or without fee is hereby granted"
        )
        assert detect_license_text(text) == "ISC"

    def test_bsd_3(self):
        text = (
            "Redistribution and use in source and binary forms, with or without modification...\n"
            "Neither the name of the copyright holder nor the names of its contributors"
        )
        assert detect_license_text(text) == "BSD-3-Clause"

    def test_bsd_2(self):
        text = "Redistribution and use in source and binary forms, with or without modification"
        assert detect_license_text(text) == "BSD-2-Clause"

    def test_apache(self):
        text = "                Apache License\n          Version 2.0, January 2004\n"
        assert detect_license_text(text) == "Apache-2.0"

    def test_gpl2_mentioning_lesser_in_body(self):
        text = (
            "GNU GENERAL PUBLIC LICENSE\nVersion 2, June 1991\n\n"
            + _FILLER
            + "covered by the GNU Lesser General Public License instead."
        )
        assert detect_license_text(text) == "GPL-2.0"

    def test_gpl3(self):
        assert detect_license_text("GNU GENERAL PUBLIC LICENSE\n Version 3, 29 June 2007") == "GPL-3.0"

    def test_lgpl3(self):
        text = "GNU LESSER GENERAL PUBLIC LICENSE\nVersion 3, 29 June 2007"
        assert detect_license_text(text) == "LGPL-3.0"

    def test_agpl(self):
        assert detect_license_text("GNU AFFERO GENERAL PUBLIC LICENSE\nVersion 3") == "AGPL-3.0"

    def test_unlicense(self):
        text = "This is free and unencumbered software released into the public domain."
        assert detect_license_text(text) == "Unlicense"

    def test_unrecognized(self):
        assert detect_license_text("All rights reserved.") is None


class TestDetectReadmeLicense:
    def test_license_heading(self):
        readme = "# pkg\n\nUsage...\n\n## License\n\nMIT © Someone\n"
        assert detect_readme_license(readme) == "MIT"

    def test_section_ends_at_next_heading(self):
        readme = "# pkg\n\n## Licence\n\nSee below.\n\n## Credits\n\nThanks to the MIT folks\n"
        assert detect_readme_license(readme) is None

    def test_no_heading(self):
        assert detect_readme_license("# pkg\n\nReleased under MIT.\n") is None


class TestIsPermissive:
    @pytest.mark.parametrize(
        "expression",
        [
            "MIT",
            "mit",
            "MIT*",
            "ISC",
            "BSD-3-Clause",
            "Apache-2.0",
            "Apache 2.0",
            "Public Domain",
            "(MIT OR Apache-2.0)",
            "MIT OR GPL-3.0",
            "(MIT AND BSD-2-Clause)",
            "Apache-2.0 WITH LLVM-exception",
            "CC0-1.0",
        ],
    )
    def test_permissive(self, expression):
        assert is_permissive(expression) is True

    @pytest.mark.parametrize(
        "expression",
        [
            None,
            "",
            "Unknown",
            "GPL-3.0",
            "LGPL-2.1",
            "AGPL-3.0",
            "MPL-2.0",
            "UNLICENSED",
            "MIT AND GPL-2.0",
            "(MIT OR",
            "OR MIT",
            "Custom: https://example.com/license",
        ],
    )
    def test_not_permissive(self, expression):
        assert is_permissive(expression) is False


class TestNormalizeRepository:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("git+https://github.com/org/a.git", "https://github.com/org/a"),
            ("git://github.com/org/a.git", "https://github.com/org/a"),
            ("git+ssh://git@github.com/org/a.git", "https://github.com/org/a"),
            ("git@github.com:org/a.git", "https://github.com/org/a"),
            ("github:org/a", "https://github.com/org/a"),
            ("gitlab:org/a", "https://gitlab.com/org/a"),
            ("org/a", "https://github.com/org/a"),
            ("https://github.com/org/a/", "https://github.com/org/a"),
            ("https://github.com/org/a.git#v1.0", "https://github.com/org/a"),
            ({"type": "git", "url": "https://github.com/org/a.git"}, "https://github.com/org/a"),
        ],
    )
    def test_forms(self, raw, expected):
        assert normalize_repository(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", {"type": "git"}, 42])
    def test_missing(self, raw):
        assert normalize_repository(raw) is None
