"""
Unit tests for domain name utilities.

Tests cover:
  - Normalisation to the ledger key
  - Left-label extraction
  - TLD derivation, including second-level .au zones
"""

from app.utils.domain_names import derive_tld, left_label, normalize_domain


class TestNormalizeDomain:
    """Tests for the normalize_domain() function."""

    def test_lowercases(self):
        assert normalize_domain("Example.COM.AU") == "example.com.au"

    def test_strips_whitespace(self):
        assert normalize_domain("  shop.au\t") == "shop.au"

    def test_removes_trailing_root_dot(self):
        assert normalize_domain("shop.au.") == "shop.au"

    def test_blank_becomes_empty(self):
        assert normalize_domain("   ") == ""

    def test_none_becomes_empty(self):
        assert normalize_domain(None) == ""

    def test_idempotent(self):
        once = normalize_domain(" Shop.AU. ")
        assert normalize_domain(once) == once


class TestLeftLabel:
    """Tests for the left_label() function."""

    def test_bare_au(self):
        assert left_label("shop.au") == "shop"

    def test_second_level_zone(self):
        assert left_label("shop.com.au") == "shop"

    def test_no_dot(self):
        assert left_label("localhost") == "localhost"


class TestDeriveTld:
    """Tests for the derive_tld() function."""

    def test_bare_au(self):
        assert derive_tld("shop.au") == ".au"

    def test_everything_after_first_dot(self):
        assert derive_tld("shop.net.au") == ".net.au"

    def test_no_dot_has_no_tld(self):
        assert derive_tld("localhost") is None
