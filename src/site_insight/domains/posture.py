"""Security posture: updates, vulnerabilities, permissions, hardening settings."""

from __future__ import annotations

from .base import DomainAnalyzer, DomainReport
from .state import SiteState

CRITICAL_PERMISSIONS = frozenset({
    "administer modules",
    "administer permissions",
    "use php for settings",
    "administer software updates",
})
HIGH_PERMISSIONS = frozenset({
    "administer users",
    "administer site configuration",
    "bypass node access",
    "administer filters",
})
RISKY_PERMISSIONS = CRITICAL_PERMISSIONS | HIGH_PERMISSIONS
RISKY_GRANT_LIMIT = 5

TRUSTED_ROLES = frozenset({"administrator"})
ANONYMOUS_ROLE = "anonymous"

RECOMMENDED_MODULES = ("captcha", "honeypot", "password_policy", "security_review", "seckit")

# Issue weights; the heaviest checks dominate the domain health
PENDING_UPDATES_WEIGHT = 3
VULNERABILITIES_WEIGHT = 2


class SecurityPostureAnalyzer(DomainAnalyzer):
    name = "security"
    max_expected_issues = 6

    def analyze(self, state: SiteState) -> DomainReport:
        sec = state.security
        report = self._start()

        if sec.pending_security_updates is None:
            report.skip("pending_security_updates")
        else:
            report.measured("pending_security_updates", sec.pending_security_updates)
            if sec.pending_security_updates > 0:
                report.issue(
                    "security",
                    "critical",
                    f"Apply {sec.pending_security_updates} pending security updates",
                    weight=PENDING_UPDATES_WEIGHT,
                )

        if sec.known_vulnerabilities is None:
            report.skip("known_vulnerabilities")
        else:
            report.measured("known_vulnerabilities", sec.known_vulnerabilities)
            if sec.known_vulnerabilities > 0:
                report.issue(
                    "security",
                    "critical",
                    f"Resolve {sec.known_vulnerabilities} known vulnerabilities",
                    weight=VULNERABILITIES_WEIGHT,
                )

        if sec.role_permissions is None:
            report.skip("role_permissions")
        else:
            self._check_permissions(sec.role_permissions, report)

        if sec.error_display is None:
            report.skip("error_display")
        else:
            report.measured("error_display", sec.error_display)
            if sec.error_display.lower() not in ("hide", "none"):
                report.issue("security", "medium", "Hide error messages from site visitors")

        if sec.trusted_host_patterns is None:
            report.skip("trusted_host_patterns")
        else:
            report.measured("trusted_host_patterns", len(sec.trusted_host_patterns))
            if not sec.trusted_host_patterns:
                report.issue("security", "high", "Configure trusted_host_patterns in settings.php")

        if state.enabled_extensions is None:
            report.skip("security_modules")
        else:
            missing = [m for m in RECOMMENDED_MODULES if m not in state.enabled_extensions]
            report.measured("missing_security_modules", missing)
            for module in missing:
                report.recommend("security", "low", f"Consider enabling the {module} module")

        return report.build(self.max_expected_issues)

    def _check_permissions(self, role_permissions, report) -> None:
        grants = sorted(
            (role, perm)
            for role, perms in role_permissions.items()
            if role not in TRUSTED_ROLES
            for perm in perms
            if perm in RISKY_PERMISSIONS
        )
        critical = [g for g in grants if g[1] in CRITICAL_PERMISSIONS]
        report.measured("risky_permission_grants", len(grants))
        report.measured("critical_permission_grants", len(critical))
        if len(grants) > RISKY_GRANT_LIMIT:
            report.issue(
                "security",
                "high",
                f"Review {len(grants)} risky permissions granted to non-admin roles",
            )
        for role, perm in critical:
            report.recommend("security", "critical", f"Revoke '{perm}' from the {role} role")

        anonymous = sorted(
            perm
            for perm in role_permissions.get(ANONYMOUS_ROLE, ())
            if perm in RISKY_PERMISSIONS or perm.startswith("administer")
        )
        report.measured("risky_anonymous_permissions", anonymous)
        if anonymous:
            report.issue(
                "security",
                "critical",
                f"Anonymous users hold administrative permissions: {', '.join(anonymous)}",
            )
