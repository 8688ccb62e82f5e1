"""Core version compatibility of a unit.

Evaluates the Composer-style ``core_version_requirement`` of a descriptor
(``^9 || ^10``, ``>=9.3 <11``, ``~10.1``, legacy ``8.x``) against the
core version an upgrade targets. A target given as a bare major version
such as ``11`` stands for the whole 11.x line, so ``^11.1`` accepts it.
"""

from __future__ import annotations

import re
from typing import Optional

COMPATIBLE = "compatible"
INCOMPATIBLE = "incompatible"
UNKNOWN = "unknown"

Version = tuple[int, int, int]

_INFINITY: Version = (1 << 31, 0, 0)
_CONDITION = re.compile(r"^(\^|~|>=|<=|>|<|==|=|!=)?\s*v?(\d+(?:\.(?:\d+|x|\*))*)(?:[-@][\w.]+)?$")


class ConstraintError(ValueError):
    """A version or constraint string could not be parsed."""


def _parts(text: str) -> list[int]:
    parts = []
    for piece in text.split("."):
        if piece in ("x", "*"):
            break
        parts.append(int(piece))
    return parts[:3]


def _pad(parts: list[int]) -> Version:
    padded = parts + [0] * (3 - len(parts))
    return padded[0], padded[1], padded[2]


def _next(parts: list[int]) -> Version:
    """First version past every version ``parts`` matches (``10.2`` -> 10.3.0)."""
    bumped = parts[:-1] + [parts[-1] + 1]
    return _pad(bumped)


def _interval(condition: str) -> tuple[Version, Version]:
    """Half-open [lower, upper) range matched by one condition."""
    match = _CONDITION.match(condition)
    if not match:
        raise ConstraintError(f"unsupported constraint {condition!r}")
    op, text = match.group(1) or "=", match.group(2)
    parts = _parts(text)
    if not parts:
        raise ConstraintError(f"no version in {condition!r}")
    lowest, exact = _pad(parts), _pad(parts)

    if op == "^":
        if parts[0] > 0 or len(parts) == 1:
            return lowest, _next(parts[:1])
        if parts[1] > 0 or len(parts) == 2:
            return lowest, _next(parts[:2])
        return lowest, _next(parts)
    if op == "~":
        return lowest, _next(parts[:-1] if len(parts) > 1 else parts)
    if op == ">=":
        return lowest, _INFINITY
    if op == ">":
        return (exact[0], exact[1], exact[2] + 1), _INFINITY
    if op == "<=":
        return (0, 0, 0), (exact[0], exact[1], exact[2] + 1)
    if op == "<":
        return (0, 0, 0), exact
    if op == "!=":
        return (0, 0, 0), _INFINITY
    return lowest, _next(parts)


def parse_constraint(requirement: str) -> list[tuple[Version, Version]]:
    """Alternatives of ``requirement`` as intervals; conditions inside one are intersected."""
    alternatives = []
    for alternative in re.split(r"\s*\|\|?\s*", requirement.strip()):
        conditions = [c for c in re.split(r"[\s,]+", alternative) if c]
        if not conditions:
            raise ConstraintError(f"empty alternative in {requirement!r}")
        # Glue operators written apart from their version (">= 9.3")
        joined: list[str] = []
        for condition in conditions:
            if joined and re.fullmatch(r"\^|~|>=|<=|>|<|==|=|!=", joined[-1]):
                joined[-1] += condition
            else:
                joined.append(condition)
        lower, upper = (0, 0, 0), _INFINITY
        for condition in joined:
            low, high = _interval(condition)
            lower, upper = max(lower, low), min(upper, high)
        alternatives.append((lower, upper))
    return alternatives


def target_interval(target: str) -> tuple[Version, Version]:
    text = target.strip().lstrip("v")
    if not re.fullmatch(r"\d+(\.(\d+|x|\*)){0,2}", text):
        raise ConstraintError(f"unsupported target version {target!r}")
    parts = _parts(text)
    return _pad(parts), _next(parts)


def check_compatibility(requirement: Optional[str], target: str) -> str:
    """Whether a unit declaring ``requirement`` can run on core ``target``.

    Returns ``compatible``, ``incompatible`` or ``unknown`` (no declared
    requirement, or one that cannot be parsed).
    """
    if not requirement or not requirement.strip():
        return UNKNOWN
    try:
        alternatives = parse_constraint(requirement)
        low, high = target_interval(target)
    except ConstraintError:
        return UNKNOWN
    for lower, upper in alternatives:
        if max(lower, low) < min(upper, high):
            return COMPATIBLE
    return INCOMPATIBLE
