"""Tests for prflow.services.pr_body (PR body rendering)."""

from prflow.models import DesiredState
from prflow.services.pr_body import (
    release_title,
    render_feature_body,
    render_release_body,
)

DESIRED = DesiredState(title="Add login", milestone="Sprint 4", linked_issue=42, labels=["feature"])


class TestFeatureBody:
    def test_placeholder_replaced(self) -> None:
        body = render_feature_body("Intro\n{{DYNAMIC_METADATA}}\nEnd", DESIRED, "feature/login", "dev")
        assert "{{DYNAMIC_METADATA}}" not in body
        assert "Milestone: `Sprint 4` – Add login" in body
        assert "**`feature/login`**" in body
        assert "Related to #42" in body
        assert body.startswith("Intro")
        assert body.rstrip().endswith("End")

    def test_existing_pr_listed(self) -> None:
        body = render_feature_body(
            "{{ DYNAMIC_METADATA }}",
            DESIRED,
            "feature/login",
            "dev",
            pr_number=12,
            pr_url="https://github.com/owner/repo/pull/12",
        )
        assert "[#12](https://github.com/owner/repo/pull/12)" in body

    def test_footer_appended(self) -> None:
        body = render_feature_body("text", DESIRED, "feature/login", "dev", footer="## Author\nTeam")
        assert body.endswith("## Author\nTeam\n")

    def test_replacement_inserted_literally(self) -> None:
        """Backslashes in titles are not treated as regex escapes."""
        desired = DesiredState(title=r"Fix C:\temp \1 paths", labels=["bug"])
        body = render_feature_body("{{DYNAMIC_METADATA}}", desired, "feature/x", "dev")
        assert r"Fix C:\temp \1 paths" in body


class TestReleaseBody:
    def test_placeholder_variants(self) -> None:
        for placeholder in ("{{RELEASE_METADATA}}", "{{ RELEASE_METADATA }}", "{{RELEASE_METADATA }}", "{{ DYNAMIC_METADATA}}"):
            body = render_release_body(placeholder, DESIRED, "release/1.2", "main", "v1.2.0", "v1.3.0")
            assert "METADATA" not in body
            assert "**Release Version**: `v1.2.0`" in body
            assert "Closes #42" in body

    def test_release_notes_appended(self) -> None:
        body = render_release_body("Body", DESIRED, "release/1.2", "main", "v1.2.0", "v1.3.0")
        assert body.startswith("Body")
        assert "## 📝 Release Notes" in body
        assert "Next development/snapshot version: `v1.3.0`" in body

    def test_title(self) -> None:
        assert release_title("Q3 release", "v1.2.0") == "[RELEASE] Q3 release (v1.2.0)"
