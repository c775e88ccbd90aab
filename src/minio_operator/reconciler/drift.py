"""Drift detectors comparing desired specs with observed remote state."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable


def quota_drifted(desired: int, observed: int) -> bool:
    return desired != observed


def canonical_json(document: Any) -> str:
    """Serialize a JSON document (or JSON text) in a canonical compact form.

    Keys are sorted and insignificant whitespace is removed, so two documents
    that differ only in formatting or key order produce the same string.

    Raises:
        ValueError: If a string argument is not valid JSON
    """
    if isinstance(document, (str, bytes)):
        document = json.loads(document)
    return json.dumps(document, sort_keys=True, separators=(",", ":"))


def compact_json(text: str) -> str:
    """Remove insignificant whitespace from JSON text, preserving key order."""
    return json.dumps(json.loads(text), separators=(",", ":"))


def policies_equivalent(desired: str, observed: str | None) -> bool:
    """Compare two policy documents by canonical form.

    An absent or unparseable observed document never matches.
    """
    if observed is None:
        return False
    try:
        return canonical_json(desired) == canonical_json(observed)
    except ValueError:
        return False


@dataclass(frozen=True)
class PolicyDiff:
    """Policy attachment changes needed to converge a user."""

    to_attach: tuple[str, ...] = ()
    to_detach: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.to_attach or self.to_detach)


def diff_policies(desired: Iterable[str], actual: Iterable[str]) -> PolicyDiff:
    """Compute the symmetric difference between desired and attached policies.

    Blank entries are ignored on both sides.

    Args:
        desired: Policies the user should have
        actual: Policies currently attached

    Returns:
        PolicyDiff with ``to_attach = desired - actual`` and ``to_detach = actual - desired``
    """
    wanted = {p.strip() for p in desired if p and p.strip()}
    current = {p.strip() for p in actual if p and p.strip()}
    return PolicyDiff(
        to_attach=tuple(sorted(wanted - current)),
        to_detach=tuple(sorted(current - wanted)),
    )
