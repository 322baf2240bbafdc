"""Semantic version parsed from a vMAJOR.MINOR.PATCH tag."""

import re

from pydantic import BaseModel, ConfigDict, Field

_TAG_RE = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")


class VersionError(Exception):
    """Raised when a version tag is malformed or a version does not increase."""

    pass


class SemVer(BaseModel):
    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)

    @classmethod
    def parse(cls, tag: str) -> "SemVer":
        """Parse ``vX.Y.Z``; anything else raises VersionError."""
        match = _TAG_RE.match(tag.strip()) if tag else None
        if not match:
            raise VersionError(f"Invalid version format (expected vX.Y.Z): {tag!r}")
        major, minor, patch = (int(part) for part in match.groups())
        return cls(major=major, minor=minor, patch=patch)

    def bump_minor(self) -> "SemVer":
        return SemVer(major=self.major, minor=self.minor + 1, patch=0)

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"
