"""Additive diff between a desired and an observed set of names."""

from typing import Iterable, List


def diff(desired: Iterable[str], existing: Iterable[str]) -> List[str]:
    """Return desired names missing from existing, in desired order.

    Pure and additive-only: names present in existing but not in desired are
    never reported, so reconciliation never removes anything. Duplicates in
    desired are reported once.
    """
    present = set(existing)
    additions: List[str] = []
    for name in desired:
        if name not in present and name not in additions:
            additions.append(name)
    return additions
