"""Desired state of a pull request as declared in its metadata document."""

from typing import Annotated, Any, List

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

PLACEHOLDER_TITLE = "Untitled PR"


def _as_name_list(value: Any) -> List[str]:
    """Coerce a YAML value (list, comma/space separated string, None) into an
    ordered list of unique names."""
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.strip().strip("[]").replace(",", " ").split()
    elif isinstance(value, (list, tuple, set)):
        raw = [str(v) for v in value if v is not None]
    else:
        raw = [str(value)]
    names: List[str] = []
    for item in raw:
        name = item.strip().strip("\"'")
        if name and name not in names:
            names.append(name)
    return names


def _as_issue_number(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    return int(str(value).strip().lstrip("#"))


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


NameList = Annotated[List[str], BeforeValidator(_as_name_list)]


class DesiredState(BaseModel):
    """Flat desired-state record parsed from a metadata document."""

    model_config = ConfigDict(frozen=True)

    title: str
    milestone: Annotated[str | None, BeforeValidator(_as_optional_str)] = None
    linked_issue: Annotated[int | None, BeforeValidator(_as_issue_number)] = None
    assignees: NameList = Field(default_factory=list)
    reviewers: NameList = Field(default_factory=list)
    labels: NameList = Field(default_factory=list, validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def _title_required(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        if not text:
            raise ValueError("title is missing or empty")
        if text == PLACEHOLDER_TITLE:
            raise ValueError("title must be specified (placeholder title found)")
        return text

    @field_validator("labels")
    @classmethod
    def _labels_required(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("labels is missing or empty")
        return value
