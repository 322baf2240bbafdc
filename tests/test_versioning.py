"""Tests for prflow.services.versioning and SemVer."""

import pytest

from prflow.models import SemVer, VersionError
from prflow.services.versioning import (
    bump_snapshot,
    get_current_version,
    get_next_version,
    release_versions,
    snapshot_version,
    validate_increment,
)


def v(tag: str) -> SemVer:
    return SemVer.parse(tag)


class TestGetCurrentVersion:
    def test_no_tag_is_initial(self) -> None:
        assert get_current_version(None) == (v("v0.0.0"), True)
        assert get_current_version("") == (v("v0.0.0"), True)

    def test_v0_0_0_accepted_as_initial(self) -> None:
        assert get_current_version("v0.0.0") == (v("v0.0.0"), True)

    def test_regular_tag(self) -> None:
        assert get_current_version("v2.5.7") == (SemVer(major=2, minor=5, patch=7), False)

    @pytest.mark.parametrize("tag", ["v1.2", "1.2.3", "v1.2.3-rc1", "release-1", "v1.2.3.4"])
    def test_malformed_tag_rejected(self, tag: str) -> None:
        with pytest.raises(VersionError):
            get_current_version(tag)


class TestNextVersion:
    def test_initial_goes_to_v0_1_0(self) -> None:
        assert str(get_next_version(v("v0.0.0"), True)) == "v0.1.0"

    def test_minor_bump_resets_patch(self) -> None:
        assert str(get_next_version(v("v2.5.7"), False)) == "v2.6.0"

    def test_validate_increment_rejects_equal(self) -> None:
        with pytest.raises(VersionError):
            validate_increment(v("v1.2.0"), v("v1.2.0"))

    def test_validate_increment_accepts_bump(self) -> None:
        validate_increment(v("v1.2.0"), v("v1.3.0"))

    def test_inconsistent_initial_flag(self) -> None:
        """An initial flag on v0.1.0 would release the same version again."""
        with pytest.raises(VersionError):
            release_versions(v("v0.1.0"), True)


class TestReleaseVersions:
    def test_initial_release_ships_current(self) -> None:
        release_tag, next_dev = release_versions(v("v0.0.0"), True)
        assert (str(release_tag), str(next_dev)) == ("v0.0.0", "v0.1.0")

    def test_regular_release_ships_next(self) -> None:
        release_tag, next_dev = release_versions(v("v1.4.2"), False)
        assert (str(release_tag), str(next_dev)) == ("v1.5.0", "v1.6.0")

    def test_snapshot_version(self) -> None:
        assert snapshot_version(v("v1.6.0")) == "1.6.0-SNAPSHOT"
        assert snapshot_version(v("v1.6.3")) == "1.6.0-SNAPSHOT"

    def test_bump_snapshot_follows_the_release(self) -> None:
        assert bump_snapshot(v("v2.5.7"), False) == "2.6.0-SNAPSHOT"
        assert bump_snapshot(*get_current_version(None)) == "0.1.0-SNAPSHOT"
