"""Render pull request bodies from a metadata document body and run facts."""

import re
from typing import List

from prflow.models import DesiredState

DYNAMIC_PLACEHOLDER_RE = re.compile(r"\{\{\s*DYNAMIC_METADATA\s*\}\}")
RELEASE_PLACEHOLDER_RE = re.compile(r"\{\{\s*(?:RELEASE|DYNAMIC)_METADATA\s*\}\}")


def substitute(body: str, pattern: re.Pattern, replacement: str) -> str:
    """Replace every placeholder occurrence; the replacement is inserted literally."""
    return pattern.sub(lambda _: replacement, body)


def feature_metadata(
    desired: DesiredState,
    source_branch: str,
    target_branch: str,
    pr_number: int | None = None,
    pr_url: str = "",
) -> str:
    """Section describing the milestone, branches, linked issue and the PR itself."""
    lines: List[str] = [
        "",
        "## 🔗 Related Milestone",
        f"- 📍 Milestone: `{desired.milestone or 'none'}` – {desired.title}",
        f"- 🛠️ Source Branch: **`{source_branch}`**",
        f"- 🎯 Target Branch: **`{target_branch}`**",
        "",
    ]
    if desired.linked_issue:
        lines += ["## Related Issues:", f"- Related to #{desired.linked_issue}", ""]
    if pr_number:
        lines += [
            "## 🔀 Merged PRs",
            f"- ✅ [#{pr_number}]({pr_url}) – `{source_branch} → {target_branch}`: {desired.title}",
        ]
    return "\n".join(lines)


def render_feature_body(
    body: str,
    desired: DesiredState,
    source_branch: str,
    target_branch: str,
    pr_number: int | None = None,
    pr_url: str = "",
    footer: str = "",
) -> str:
    section = feature_metadata(desired, source_branch, target_branch, pr_number, pr_url)
    rendered = substitute(body, DYNAMIC_PLACEHOLDER_RE, section)
    return _with_footer(rendered, footer)


def release_metadata(
    desired: DesiredState,
    source_branch: str,
    target_branch: str,
    release_tag: str,
    next_dev: str,
) -> str:
    lines: List[str] = [
        "",
        "## 🚀 Release Information",
        f"- **Release Version**: `{release_tag}`",
        f"- **Next Development Version**: `{next_dev}`",
        f"- **Milestone**: `{desired.milestone}` – {desired.title}",
        f"- **Source Branch**: `{source_branch}`",
        f"- **Target Branch**: `{target_branch}`",
        "",
    ]
    if desired.linked_issue:
        lines += ["## 🔗 Related Issues", f"- Closes #{desired.linked_issue}", ""]
    return "\n".join(lines)


def release_notes(release_tag: str, next_dev: str) -> str:
    return "\n".join(
        [
            "",
            "## 📝 Release Notes",
            f"This release publishes `{release_tag}`.",
            "",
            "### Versioning",
            f"- Released: `{release_tag}`",
            f"- Next development/snapshot version: `{next_dev}`",
            "",
            "## ✅ Quality Assurance",
            "- CI checks completed",
            "- Version increment validated",
            "- Release metadata verified",
        ]
    )


def render_release_body(
    body: str,
    desired: DesiredState,
    source_branch: str,
    target_branch: str,
    release_tag: str,
    next_dev: str,
    footer: str = "",
) -> str:
    """Fill release (or dynamic) placeholders, then append the release notes.

    Placeholders match with any spacing inside the braces, e.g.
    ``{{RELEASE_METADATA}}`` and ``{{ RELEASE_METADATA }}``.
    """
    section = release_metadata(desired, source_branch, target_branch, release_tag, next_dev)
    rendered = substitute(body, RELEASE_PLACEHOLDER_RE, section)
    rendered += release_notes(release_tag, next_dev)
    return _with_footer(rendered, footer)


def release_title(title: str, release_tag: str) -> str:
    return f"[RELEASE] {title} ({release_tag})"


def _with_footer(body: str, footer: str) -> str:
    if not footer or not footer.strip():
        return body
    return f"{body.rstrip()}\n\n{footer.strip()}\n"
