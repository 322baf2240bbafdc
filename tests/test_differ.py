"""Tests for prflow.services.differ."""

from prflow.services.differ import diff


def test_diff_returns_missing_in_desired_order() -> None:
    """Items absent from existing are returned in desired order."""
    assert diff(["bug", "ui", "docs"], ["ui"]) == ["bug", "docs"]


def test_diff_empty_when_all_present() -> None:
    assert diff(["a", "b"], ["b", "a", "c"]) == []


def test_diff_drops_duplicates() -> None:
    """Duplicate desired items appear once."""
    assert diff(["a", "a", "b", "a"], []) == ["a", "b"]


def test_diff_never_returns_removals() -> None:
    """Existing items not desired are ignored, never reported."""
    assert diff([], ["x", "y"]) == []


def test_diff_after_applying_additions_is_empty() -> None:
    """Applying the additions leaves nothing to add."""
    desired = ["feature", "ui", "feature", "backend"]
    existing = ["ui", "stale"]
    assert diff(desired, existing + diff(desired, existing)) == []


def test_diff_does_not_mutate_inputs() -> None:
    desired = ["a", "b"]
    existing = ["b"]
    diff(desired, existing)
    assert desired == ["a", "b"]
    assert existing == ["b"]
