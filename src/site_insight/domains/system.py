"""Hosting requirements: PHP version, memory limit, PHP extensions."""

from __future__ import annotations

import math
import re
from typing import Optional

from .base import DomainAnalyzer, DomainReport
from .state import SiteState

MIN_PHP_VERSION = (8, 1)
MIN_MEMORY_LIMIT_MB = 256.0
REQUIRED_EXTENSIONS = ("curl", "dom", "gd", "hash", "json", "mbstring", "openssl", "pcre", "pdo", "xml")

_UNITS = {"": 1.0 / (1024 * 1024), "k": 1.0 / 1024, "m": 1.0, "g": 1024.0}


def memory_limit_mb(limit: str) -> float:
    """Megabytes in a php.ini size (``256M``, ``1G``); infinite for ``-1``.

    Raises:
        ValueError: If ``limit`` is not a php.ini size
    """
    match = re.fullmatch(r"\s*(-?\d+)\s*([kmgKMG]?)\s*", limit)
    if not match:
        raise ValueError(f"not a memory size: {limit!r}")
    amount = int(match.group(1))
    if amount < 0:
        return math.inf
    return amount * _UNITS[match.group(2).lower()]


def php_version_tuple(version: str) -> tuple[int, ...]:
    match = re.match(r"\s*(\d+)(?:\.(\d+))?", version)
    if not match:
        raise ValueError(f"not a PHP version: {version!r}")
    return tuple(int(part) for part in match.groups(default="0"))


def _parsed(parse, value: Optional[str]):
    """``parse(value)``, or None when the value is absent or malformed."""
    if value is None:
        return None
    try:
        return parse(value)
    except ValueError:
        return None


class SystemRequirementsAnalyzer(DomainAnalyzer):
    name = "system"
    max_expected_issues = 4

    def analyze(self, state: SiteState) -> DomainReport:
        system = state.system
        report = self._start()

        version = _parsed(php_version_tuple, system.php_version)
        if version is None:
            report.skip("php_version")
        else:
            report.measured("php_version", system.php_version)
            if version < MIN_PHP_VERSION:
                report.issue(
                    "system",
                    "high",
                    f"PHP {system.php_version} is below the recommended 8.1; upgrade PHP",
                )

        megabytes = _parsed(memory_limit_mb, system.memory_limit)
        if megabytes is None:
            report.skip("memory_limit")
        else:
            report.measured("memory_limit", system.memory_limit)
            if megabytes < MIN_MEMORY_LIMIT_MB:
                report.issue(
                    "system",
                    "medium",
                    f"PHP memory_limit {system.memory_limit} is below the recommended 256M",
                )

        if system.php_extensions is None:
            report.skip("php_extensions")
        else:
            missing = [ext for ext in REQUIRED_EXTENSIONS if ext not in system.php_extensions]
            report.measured("missing_php_extensions", missing)
            if missing:
                report.issue(
                    "system",
                    "critical",
                    f"Install the required PHP extensions: {', '.join(missing)}",
                    weight=2,
                )

        return report.build(self.max_expected_issues)
