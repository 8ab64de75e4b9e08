"""Tests for custom-id pattern matching."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from interaction_router.interactions.patterns import CustomIdPattern  # noqa: E402


@pytest.mark.parametrize("custom_id", ["role:123", "role:"])
def test_prefix_pattern_matches(custom_id):
    assert CustomIdPattern.starts_with("role:").matches(custom_id)


@pytest.mark.parametrize("custom_id", ["rolex", "ROLE:1", "", "xrole:1"])
def test_prefix_pattern_rejects(custom_id):
    assert not CustomIdPattern.starts_with("role:").matches(custom_id)


def test_exact_pattern_matches_only_identical_id():
    pattern = CustomIdPattern.equals("confirm")

    assert pattern.matches("confirm")
    assert not pattern.matches("confirm ")
    assert not pattern.matches("Confirm")
    assert not pattern.matches("confirmed")
    assert not pattern.matches("")


def test_empty_pattern_never_matches():
    pattern = CustomIdPattern()

    assert not pattern.matches("")
    assert not pattern.matches("anything")


def test_pattern_cannot_hold_both_rules():
    with pytest.raises(ValueError):
        CustomIdPattern(prefix="a", exact="b")


def test_equal_patterns_share_identity_as_keys():
    table = {CustomIdPattern.equals("confirm"): 1}
    table[CustomIdPattern.equals("confirm")] = 2

    assert table == {CustomIdPattern.equals("confirm"): 2}
    assert CustomIdPattern.equals("x") != CustomIdPattern.starts_with("x")


def test_pattern_text_shows_rule():
    assert str(CustomIdPattern.starts_with("role:")) == "role:*"
    assert str(CustomIdPattern.equals("confirm")) == "confirm"
    assert str(CustomIdPattern()) == "<never>"
