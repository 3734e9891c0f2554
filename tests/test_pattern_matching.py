"""
Unit tests for organization rules and pattern matching.
"""

import pytest

from sortd.organization_logic.rules import (
    OrganizationRule,
    find_matching_rule,
    load_rules,
    match_rules,
)
from sortd.utils.errors import ConfigurationError, ErrorKind


class TestOrganizationRule:
    """Test rule construction and validation."""

    def test_from_dict_with_match_and_target(self):
        rule = OrganizationRule.from_dict({"match": "*.txt", "target": "documents"})

        assert rule.glob == "*.txt"
        assert rule.target == "documents"
        assert rule.prefixes == ()
        assert rule.suffixes == ()

    def test_from_dict_accepts_alternate_keys(self):
        rule = OrganizationRule.from_dict({"glob": "*.jpg", "dest_dir": "images"})

        assert rule.glob == "*.jpg"
        assert rule.target == "images"

    def test_prefixes_only_defaults_glob(self):
        rule = OrganizationRule.from_dict({"prefixes": ["IMG_"], "target": "photos"})

        assert rule.glob == "*"
        assert rule.prefixes == ("IMG_",)

    def test_single_prefix_string(self):
        rule = OrganizationRule.from_dict({"prefixes": "IMG_", "target": "photos"})
        assert rule.prefixes == ("IMG_",)

    def test_missing_target_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            OrganizationRule.from_dict({"match": "*.txt"})

        assert exc_info.value.kind is ErrorKind.INVALID_RULE

    def test_empty_target_rejected(self):
        with pytest.raises(ConfigurationError):
            OrganizationRule.from_dict({"match": "*.txt", "target": "  "})

    def test_rule_without_any_matcher_rejected(self):
        with pytest.raises(ConfigurationError):
            OrganizationRule.from_dict({"target": "documents"})

    def test_empty_glob_rejected(self):
        with pytest.raises(ConfigurationError):
            OrganizationRule.from_dict({"match": "", "target": "documents"})

    def test_non_mapping_rejected(self):
        with pytest.raises(ConfigurationError):
            OrganizationRule.from_dict(["*.txt", "documents"])

    def test_to_dict_round_trips_through_from_dict(self):
        original = {
            "match": "*.pdf",
            "target": "invoices",
            "prefixes": ["inv_"],
            "suffixes": ["_final"],
            "name": "invoices",
        }
        rule = OrganizationRule.from_dict(original)

        assert rule.to_dict() == original
        assert OrganizationRule.from_dict(rule.to_dict()) == rule

    def test_rules_are_immutable(self):
        rule = OrganizationRule(target="documents", glob="*.txt")
        with pytest.raises(AttributeError):
            rule.target = "elsewhere"


class TestRuleMatching:
    """Test matching of a single rule against file names."""

    def test_glob_matches_base_name(self):
        rule = OrganizationRule(target="documents", glob="*.txt")

        assert rule.matches("a.txt")
        assert rule.matches("/some/dir/a.txt")
        assert not rule.matches("a.txt.bak")

    def test_matching_is_case_sensitive(self):
        rule = OrganizationRule(target="documents", glob="*.txt")

        assert not rule.matches("README.TXT")

    def test_hidden_files_are_ordinary_names(self):
        rule = OrganizationRule(target="dotfiles", glob=".hidden*")

        assert rule.matches(".hidden_config")
        assert OrganizationRule(target="all", glob="*").matches(".env")

    def test_prefix_must_start_name(self):
        rule = OrganizationRule(target="photos", glob="*.jpg", prefixes=("IMG_", "DSC"))

        assert rule.matches("IMG_0001.jpg")
        assert rule.matches("DSC0042.jpg")
        assert not rule.matches("holiday_IMG_1.jpg")
        assert not rule.matches("IMG_0001.png")

    def test_suffix_is_checked_before_extension(self):
        rule = OrganizationRule(target="drafts", suffixes=("_draft",))

        assert rule.matches("report_draft.txt")
        assert rule.matches("notes_draft")
        assert not rule.matches("report_draft.txt.bak")
        assert not rule.matches("draft_report.txt")

    def test_suffix_on_hidden_file(self):
        rule = OrganizationRule(target="drafts", suffixes=("_draft",))

        assert rule.matches(".config_draft")

    def test_prefix_and_suffix_both_required(self):
        rule = OrganizationRule(
            target="reports", prefixes=("Q1_",), suffixes=("_final",)
        )

        assert rule.matches("Q1_report_final.pdf")
        assert not rule.matches("Q1_report.pdf")
        assert not rule.matches("report_final.pdf")


class TestMatchRules:
    """Test first-match-wins matching over rule lists."""

    @pytest.fixture
    def rules(self):
        return load_rules(
            [
                {"match": "*.txt", "target": "documents"},
                {"match": "*.jpg", "target": "images"},
                {"match": "*", "target": "everything"},
            ]
        )

    def test_returns_destination_of_match(self, rules):
        assert match_rules("a.txt", rules) == ("documents", True)
        assert match_rules("b.jpg", rules) == ("images", True)

    def test_first_matching_rule_wins(self, rules):
        # "*" also matches a.txt but comes later
        assert match_rules("a.txt", rules) == ("documents", True)
        assert match_rules("c.bin", rules) == ("everything", True)

    def test_order_decides_between_overlapping_rules(self):
        specific_first = load_rules(
            [
                {"match": "*.pdf", "prefixes": ["inv_"], "target": "invoices"},
                {"match": "*.pdf", "target": "pdfs"},
            ]
        )
        general_first = list(reversed(specific_first))

        assert match_rules("inv_001.pdf", specific_first) == ("invoices", True)
        assert match_rules("inv_001.pdf", general_first) == ("pdfs", True)

    def test_no_match(self):
        rules = load_rules([{"match": "*.txt", "target": "documents"}])

        assert match_rules("c.bin", rules) == (None, False)
        assert find_matching_rule("c.bin", rules) is None

    def test_empty_rule_list(self):
        assert match_rules("a.txt", []) == (None, False)

    def test_matching_is_repeatable(self, rules):
        first = [match_rules(name, rules) for name in ("a.txt", "b.jpg", "c")]
        second = [match_rules(name, rules) for name in ("a.txt", "b.jpg", "c")]

        assert first == second


class TestLoadRules:
    """Test loading rule lists from configuration."""

    def test_preserves_order(self):
        rules = load_rules(
            [
                {"match": "*.b", "target": "b"},
                {"match": "*.a", "target": "a"},
            ]
        )

        assert [r.target for r in rules] == ["b", "a"]

    def test_none_means_no_rules(self):
        assert load_rules(None) == []

    def test_error_names_pattern_index(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_rules(
                [
                    {"match": "*.txt", "target": "documents"},
                    {"match": "*.jpg"},
                ]
            )

        assert "pattern 1" in str(exc_info.value)
        assert exc_info.value.kind is ErrorKind.INVALID_RULE
