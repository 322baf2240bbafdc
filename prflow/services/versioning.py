"""Release version progression from the latest vX.Y.Z tag."""

from typing import Tuple

from prflow.models import SemVer, VersionError

INITIAL_VERSION = SemVer(major=0, minor=0, patch=0)
FIRST_RELEASE = SemVer(major=0, minor=1, patch=0)


def get_current_version(latest_tag: str | None) -> Tuple[SemVer, bool]:
    """Return (current version, is_initial).

    No tag, or the tag ``v0.0.0``, means the project has never been released.

    Raises:
        VersionError: the tag does not match vX.Y.Z.
    """
    if not latest_tag or not latest_tag.strip():
        return INITIAL_VERSION, True
    current = SemVer.parse(latest_tag)
    return current, current == INITIAL_VERSION


def get_next_version(current: SemVer, is_initial: bool) -> SemVer:
    if is_initial:
        return FIRST_RELEASE
    return current.bump_minor()


def validate_increment(current: SemVer, next_version: SemVer) -> None:
    if current == next_version:
        raise VersionError(f"Version must increase: current {current} equals next {next_version}")


def release_versions(current: SemVer, is_initial: bool) -> Tuple[SemVer, SemVer]:
    """Return (release_tag, next_dev).

    The first release ships the current version and opens development on the
    next one; later releases ship the next version and open the one after.
    """
    next_version = get_next_version(current, is_initial)
    validate_increment(current, next_version)
    if is_initial:
        return current, next_version
    return next_version, next_version.bump_minor()


def snapshot_version(version: SemVer) -> str:
    """Development version string, e.g. ``0.2.0-SNAPSHOT``."""
    return f"{version.major}.{version.minor}.0-SNAPSHOT"


def bump_snapshot(current: SemVer, is_initial: bool) -> str:
    """Snapshot the version bump PR moves the project to after a release.

    ``v2.5.7`` gives ``2.6.0-SNAPSHOT``; a first release gives ``0.1.0-SNAPSHOT``.
    """
    return snapshot_version(get_next_version(current, is_initial))
