"""Metadata documents: YAML front matter (desired PR state) plus a markdown body.

A document looks like::

    ---
    title: Add login page
    milestone: Sprint 4
    labels: [feature, ui]
    assignees: alice
    ---
    ## Summary
    {{DYNAMIC_METADATA}}

Feature documents live at ``<metadata_dir>/<branch minus prefix>.md``;
release documents fall back to ``<metadata_dir>/release.md``.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml
from pydantic import BaseModel, ValidationError

from prflow.models import DesiredState

FRONT_MATTER_MARKER = "---"

LOG = logging.getLogger("prflow.services.metadata")


class MetadataError(Exception):
    """Raised when a metadata document is missing or lacks required fields."""

    pass


class MetadataDocument(BaseModel):
    """Parsed metadata document."""

    path: Path
    desired: DesiredState
    body: str = ""


def branch_key(branch: str, prefix: str) -> str:
    """Branch name without its flow prefix (``feature/login`` -> ``login``)."""
    return branch.removeprefix(prefix)


def metadata_path(
    branch: str,
    metadata_dir: str,
    prefix: str,
    repo_dir: Path | None = None,
    fallback_file: str | None = None,
) -> Path:
    """Resolve the metadata document for a branch.

    Raises:
        MetadataError: neither the branch document nor the fallback exists.
    """
    base = (Path(repo_dir) if repo_dir is not None else Path.cwd()) / metadata_dir
    path = base / f"{branch_key(branch, prefix)}.md"
    if path.is_file():
        return path
    if fallback_file:
        fallback = base / fallback_file
        if fallback.is_file():
            LOG.info("No metadata for %s, using %s", branch, fallback)
            return fallback
    raise MetadataError(f"Metadata file not found: {path}")


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a document into its front-matter mapping and the body after it.

    The front matter is the block between the first two ``---`` lines. A
    document without front matter yields an empty mapping and the whole text.

    Raises:
        MetadataError: the front matter is not a YAML mapping.
    """
    lines = text.splitlines()
    markers = [i for i, line in enumerate(lines) if line.strip() == FRONT_MATTER_MARKER]
    if len(markers) < 2:
        return {}, text
    start, end = markers[0], markers[1]
    try:
        data = yaml.safe_load("\n".join(lines[start + 1 : end])) or {}
    except yaml.YAMLError as e:
        raise MetadataError(f"Invalid front matter: {e}") from e
    if not isinstance(data, dict):
        raise MetadataError("Front matter must be a mapping")
    return data, "\n".join(lines[end + 1 :])


def _describe(error: ValidationError) -> str:
    fields = []
    for err in error.errors():
        name = ".".join(str(p) for p in err.get("loc") or ()) or "document"
        fields.append(f"{name}: {err.get('msg', 'invalid')}")
    return "; ".join(fields)


def parse_metadata(text: str, path: Path, require_milestone: bool = False) -> MetadataDocument:
    """Build the desired state from a document's text.

    Raises:
        MetadataError: a required field (title, labels, or milestone when
            require_milestone) is missing, empty or invalid.
    """
    data, body = split_front_matter(text)
    try:
        desired = DesiredState.model_validate(data)
    except ValidationError as e:
        raise MetadataError(f"Invalid metadata in {path}: {_describe(e)}") from e
    if require_milestone and not desired.milestone:
        raise MetadataError(f"Invalid metadata in {path}: milestone: is missing or empty")
    return MetadataDocument(path=path, desired=desired, body=body)


def load_metadata(path: Path, require_milestone: bool = False) -> MetadataDocument:
    """Read and parse a metadata document."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MetadataError(f"Cannot read metadata file {path}: {e}") from e
    return parse_metadata(text, path, require_milestone=require_milestone)
