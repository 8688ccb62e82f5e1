"""Tests for the whole-site domain analyzers."""

import json

import pytest

from site_insight.domains import (
    DOMAIN_COMPLETE,
    DOMAIN_FAILED,
    DOMAIN_PARTIAL,
    NEUTRAL_HEALTH,
    ContentAnalyzer,
    DatabaseAnalyzer,
    JsonSiteStateProvider,
    PerformanceConfigAnalyzer,
    SecurityPostureAnalyzer,
    SiteState,
    SystemRequirementsAnalyzer,
    WatchdogAnalyzer,
    default_domain_analyzers,
    health_from_issues,
    health_status,
    neutral_report,
    site_state_from_dict,
)
from site_insight.domains.system import memory_limit_mb
from site_insight.exceptions import MetadataProviderError


class TestHealth:
    @pytest.mark.parametrize(
        "issues,max_expected,score",
        [(0, 4, 100.0), (1, 4, 75.0), (2, 4, 50.0), (4, 4, 0.0), (9, 4, 0.0), (3, 6, 50.0)],
    )
    def test_health_from_issues(self, issues, max_expected, score):
        assert health_from_issues(issues, max_expected) == score

    @pytest.mark.parametrize(
        "score,status",
        [(100, "excellent"), (80, "excellent"), (79.9, "good"), (60, "good"), (40, "fair"), (39, "poor")],
    )
    def test_health_status(self, score, status):
        assert health_status(score) == status

    def test_neutral_report(self):
        report = neutral_report("database", 4, "boom")
        assert report.health_score == NEUTRAL_HEALTH
        assert report.status == DOMAIN_FAILED


class TestEmptyState:
    """Absent site state is never reported as healthy."""

    @pytest.mark.parametrize("analyzer", default_domain_analyzers(), ids=lambda a: a.name)
    def test_neutral_and_partial(self, analyzer):
        report = analyzer.analyze(SiteState())
        assert report.health_score == NEUTRAL_HEALTH
        assert report.status == DOMAIN_PARTIAL
        assert report.issues == 0
        assert report.not_measured


class TestDatabaseAnalyzer:
    def _state(self, **database):
        return site_state_from_dict({"database": database})

    def test_healthy_database(self):
        state = self._state(
            tables=[{"name": "node", "engine": "InnoDB", "collation": "utf8mb4_general_ci", "size_mb": 1.0}],
            default_collation="utf8mb4_general_ci",
            size_mb=100.0,
            slow_queries=3,
        )
        report = DatabaseAnalyzer().analyze(state)
        assert report.issues == 0
        assert report.health_score == 100.0
        assert report.status == DOMAIN_COMPLETE
        assert report.recommendations == ()

    def test_all_problems(self):
        state = self._state(
            tables=[
                {"name": "cache", "engine": "MyISAM", "collation": "latin1_swedish_ci", "data_free_mb": 150.0},
                {"name": "node", "engine": "InnoDB", "collation": "utf8mb4_general_ci"},
            ],
            size_mb=2048.0,
            slow_queries=500,
        )
        report = DatabaseAnalyzer().analyze(state)
        assert report.issues == 5
        assert report.health_score == 0.0
        assert report.metric("non_innodb_tables") == 1
        assert report.metric("fragmented_mb") == 150.0

    def test_partial_inputs_listed_not_counted(self):
        report = DatabaseAnalyzer().analyze(self._state(slow_queries=5))
        assert report.not_measured == ("size_mb", "tables")
        assert report.issues == 0
        assert report.health_score == 100.0
        assert report.status == DOMAIN_PARTIAL


class TestContentAnalyzer:
    def test_deprecated_fields_and_unused_bundles(self):
        state = site_state_from_dict({
            "content": {
                "fields": [
                    {"name": "field_b", "type": "field_collection"},
                    {"name": "field_a", "type": "field_collection"},
                    {"name": "field_addr", "type": "addressfield"},
                ],
                "content_types": [{"name": f"t{i}", "items": 0} for i in range(4)],
                "vocabularies": [{"name": f"v{i}", "items": 0} for i in range(3)],
            }
        })
        report = ContentAnalyzer().analyze(state)
        assert report.issues == 3
        assert report.metric("deprecated_fields") == ["field_a", "field_addr", "field_b"]
        high = [r for r in report.recommendations if r.priority == "high"]
        assert len(high) == 2

    def test_large_site_is_recommendation_only(self):
        state = site_state_from_dict({"content": {"content_types": [{"name": "article", "items": 200000}]}})
        report = ContentAnalyzer().analyze(state)
        assert report.issues == 0
        assert [r.priority for r in report.recommendations] == ["low"]


class TestSecurityPostureAnalyzer:
    def test_weighted_issues(self):
        state = site_state_from_dict({
            "security": {
                "pending_security_updates": 2,
                "known_vulnerabilities": 1,
                "error_display": "all",
                "trusted_host_patterns": [],
                "role_permissions": {"anonymous": ["access content"]},
            }
        })
        report = SecurityPostureAnalyzer().analyze(state)
        assert report.issues == 3 + 2 + 1 + 1
        assert report.health_score == 0.0
        assert report.recommendations[0].priority == "critical"

    def test_risky_grants(self):
        permissions = {
            "administrator": ["administer modules", "administer permissions"],
            "editor": [
                "administer modules",
                "administer users",
                "administer site configuration",
                "bypass node access",
                "administer filters",
                "administer permissions",
            ],
            "anonymous": ["access content", "administer nodes"],
        }
        state = site_state_from_dict({"security": {"role_permissions": permissions}})
        report = SecurityPostureAnalyzer().analyze(state)
        assert report.metric("risky_permission_grants") == 6
        assert report.metric("critical_permission_grants") == 2
        assert report.metric("risky_anonymous_permissions") == ["administer nodes"]
        assert report.issues == 2
        revoke = [r.message for r in report.recommendations if r.message.startswith("Revoke")]
        assert revoke == [
            "Revoke 'administer modules' from the editor role",
            "Revoke 'administer permissions' from the editor role",
        ]

    def test_missing_security_modules(self):
        state = site_state_from_dict({"enabled_extensions": ["node", "honeypot"]})
        report = SecurityPostureAnalyzer().analyze(state)
        assert "honeypot" not in report.metric("missing_security_modules")
        assert report.issues == 0
        assert all(r.priority == "low" for r in report.recommendations)


class TestPerformanceConfigAnalyzer:
    def test_everything_off(self):
        state = site_state_from_dict({
            "performance": {
                "page_cache_enabled": False,
                "css_aggregation": False,
                "js_aggregation": False,
                "memory_usage_percent": 95.0,
            }
        })
        report = PerformanceConfigAnalyzer().analyze(state)
        assert report.issues == 4
        assert report.health_score == 0.0
        assert report.health_status == "poor"

    def test_short_max_age_is_recommendation_only(self):
        state = site_state_from_dict({
            "performance": {
                "page_cache_enabled": True,
                "page_cache_max_age": 60,
                "css_aggregation": True,
                "js_aggregation": True,
                "memory_usage_percent": 40.0,
            }
        })
        report = PerformanceConfigAnalyzer().analyze(state)
        assert report.issues == 0
        assert report.status == DOMAIN_COMPLETE
        assert [r.priority for r in report.recommendations] == ["medium"]

    def test_zero_max_age_is_an_issue(self):
        state = site_state_from_dict({"performance": {"page_cache_enabled": True, "page_cache_max_age": 0}})
        report = PerformanceConfigAnalyzer().analyze(state)
        assert report.issues == 1


class TestSystemRequirementsAnalyzer:
    def _state(self, **system):
        return site_state_from_dict({"system": system})

    def test_supported_host(self):
        state = self._state(
            php_version="8.3.4",
            memory_limit="512M",
            php_extensions=["curl", "dom", "gd", "hash", "json", "mbstring", "openssl", "pcre", "pdo", "xml"],
        )
        report = SystemRequirementsAnalyzer().analyze(state)
        assert report.issues == 0
        assert report.health_score == 100.0
        assert report.status == DOMAIN_COMPLETE
        assert report.metric("missing_php_extensions") == []

    def test_all_problems(self):
        state = self._state(php_version="7.4.33", memory_limit="128M", php_extensions=["curl", "json"])
        report = SystemRequirementsAnalyzer().analyze(state)
        assert report.issues == 4
        assert report.health_score == 0.0
        assert "gd" in report.metric("missing_php_extensions")
        assert [r.priority for r in report.recommendations] == ["critical", "high", "medium"]

    def test_unlimited_memory_is_fine(self):
        report = SystemRequirementsAnalyzer().analyze(self._state(memory_limit="-1"))
        assert report.issues == 0
        assert report.metric("memory_limit") == "-1"
        assert report.not_measured == ("php_extensions", "php_version")

    def test_malformed_values_not_measured(self):
        report = SystemRequirementsAnalyzer().analyze(self._state(php_version="unknown", memory_limit="lots"))
        assert report.issues == 0
        assert report.health_score == NEUTRAL_HEALTH
        assert "php_version" in report.not_measured
        assert "memory_limit" in report.not_measured

    @pytest.mark.parametrize("limit,megabytes", [("256M", 256.0), ("1G", 1024.0), ("131072K", 128.0), ("268435456", 256.0)])
    def test_memory_limit_mb(self, limit, megabytes):
        assert memory_limit_mb(limit) == megabytes


class TestWatchdogAnalyzer:
    def _state(self, **watchdog):
        return site_state_from_dict({"watchdog": watchdog})

    def test_quiet_logs(self):
        state = self._state(logging_enabled=True, total_entries=1000, not_found=5, php_errors=0, log_age_days=20)
        report = WatchdogAnalyzer().analyze(state)
        assert report.issues == 0
        assert report.status == DOMAIN_COMPLETE
        assert report.metric("not_found_percent") == 0.5
        assert report.recommendations == ()

    def test_all_problems(self):
        state = self._state(
            logging_enabled=False,
            total_entries=2000,
            not_found=400,
            php_errors=250,
            php_error_types={"warning": 200, "error": 50},
            log_age_days=120,
        )
        report = WatchdogAnalyzer().analyze(state)
        assert report.issues == 3
        assert report.health_score == 0.0
        assert report.metric("not_found_percent") == 20.0
        assert report.metric("php_error_percent") == 12.5
        assert report.metric("php_error_types") == {"error": 50, "warning": 200}
        assert {r.category for r in report.recommendations} == {
            "logging",
            "php_errors",
            "404_errors",
            "log_maintenance",
        }

    def test_few_php_errors_recommended_not_counted(self):
        report = WatchdogAnalyzer().analyze(self._state(php_errors=3))
        assert report.issues == 0
        assert [(r.category, r.priority) for r in report.recommendations] == [("php_errors", "medium")]

    def test_rate_needs_total(self):
        report = WatchdogAnalyzer().analyze(self._state(not_found=40))
        assert "not_found_percent" in report.not_measured
        assert report.health_score == NEUTRAL_HEALTH


class TestJsonSiteStateProvider:
    def test_loads_export(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(
            json.dumps({
                "enabled_extensions": ["node"],
                "test_coverage": {"mymodule": 55},
                "units": {"legacy": {"deprecated": True}},
                "security": {"role_permissions": {"b": ["x"], "a": ["y"]}},
            }),
            encoding="utf-8",
        )
        state = JsonSiteStateProvider(path).load()
        assert state.enabled_extensions == frozenset({"node"})
        assert state.test_coverage == {"mymodule": 55.0}
        assert state.unit_overrides == {"legacy": {"deprecated": True}}
        assert list(state.security.role_permissions) == ["a", "b"]
        assert state.database.tables is None
        assert state.system.php_version is None
        assert state.watchdog.php_errors is None

    def test_loads_system_and_logs(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(
            json.dumps({
                "system": {"php_version": "8.2.1", "php_extensions": ["GD", "pdo"]},
                "watchdog": {"php_errors": 7, "php_error_types": {"warning": 7}},
            }),
            encoding="utf-8",
        )
        state = JsonSiteStateProvider(path).load()
        assert state.system.php_extensions == frozenset({"gd", "pdo"})
        assert state.system.memory_limit is None
        assert state.watchdog.php_errors == 7
        assert state.watchdog.php_error_types == {"warning": 7}

    @pytest.mark.parametrize(
        "body",
        [
            "{not json",
            "[1, 2]",
            json.dumps({"database": {"tables": [{"nom": "x"}]}}),
            json.dumps({"performance": {"css_aggregation": "yes"}}),
        ],
    )
    def test_bad_exports_raise(self, tmp_path, body):
        path = tmp_path / "state.json"
        path.write_text(body, encoding="utf-8")
        with pytest.raises(MetadataProviderError):
            JsonSiteStateProvider(path).load()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(MetadataProviderError):
            JsonSiteStateProvider(tmp_path / "missing.json").load()
