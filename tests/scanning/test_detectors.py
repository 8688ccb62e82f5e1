"""Tests for the detector registry and detector tables."""

import re

import pytest

from site_insight.exceptions import DetectorTableError
from site_insight.scanning import (
    Detector,
    DetectorRegistry,
    Family,
    LanguageFamily,
    Severity,
    default_detectors,
    load_detector_table,
)


def _detector(detector_id="custom.x", family=Family.SECURITY, pattern=r"\bx\(", severity=Severity.LOW):
    return Detector(
        id=detector_id,
        family=family,
        pattern=re.compile(pattern),
        severity=severity,
        message="x",
    )


class TestBundledDetectors:
    """Test the bundled deprecated, security, coding and performance tables."""

    def test_every_pattern_family_present(self):
        families = {d.family for d in default_detectors()}
        assert families == {
            Family.DEPRECATED_API,
            Family.SECURITY,
            Family.CODING_STANDARD,
            Family.PERFORMANCE,
        }

    def test_deprecated_call_matches_function_calls_only(self):
        registry = DetectorRegistry.default()
        detector = registry.get("deprecated.db_query")
        assert detector.matches("$r = db_query('SELECT 1');")
        assert detector.matches("$r = \\db_query('SELECT 1');")
        assert not detector.matches("$r = $connection->db_query('x');")
        assert not detector.matches("$r = Foo::db_query('x');")
        assert not detector.matches("$r = my_db_query('x');")
        assert not detector.matches("function db_query($q) {")

    def test_mysql_query_is_high_severity(self):
        detector = DetectorRegistry.default().get("deprecated.mysql_query")
        assert detector.family is Family.DEPRECATED_API
        assert detector.severity is Severity.HIGH
        assert detector.replacement

    def test_deprecated_hook_matches_implementation(self):
        detector = DetectorRegistry.default().get("deprecated.hook_init")
        assert detector.matches("function mymodule_init() {")
        assert not detector.matches("mymodule_init();")

    def test_hook_detector_scoped_to_unit(self):
        detector = DetectorRegistry.default().get("deprecated.hook_init")
        assert detector.matches("function mymodule_init() {", unit="mymodule")
        assert not detector.matches("function other_init() {", unit="mymodule")
        assert not detector.matches("function mymodule_cache_init() {", unit="mymodule")
        assert detector.matches("function my_module_init() {", unit="my_module")

    def test_exec_does_not_match_curl_exec(self):
        registry = DetectorRegistry.default()
        assert not registry.get("security.exec").matches("$out = curl_exec($ch);")
        assert registry.get("performance.sync_http").matches("$out = curl_exec($ch);")

    def test_twig_raw_only_applies_to_templates(self):
        registry = DetectorRegistry.default()
        ids = {d.id for d in registry.for_language(LanguageFamily.TEMPLATE)}
        assert "security.twig_raw" in ids
        assert "deprecated.db_query" not in ids
        php_ids = {d.id for d in registry.for_language(LanguageFamily.PHP)}
        assert "security.twig_raw" not in php_ids


class TestDetectorRegistry:
    """Test registry invariants."""

    def test_sorted_by_id(self):
        ids = [d.id for d in DetectorRegistry.default()]
        assert ids == sorted(ids)

    def test_duplicate_ids_rejected(self):
        with pytest.raises(DetectorTableError):
            DetectorRegistry([_detector(), _detector()])

    def test_non_pattern_families_rejected(self):
        with pytest.raises(DetectorTableError):
            DetectorRegistry([_detector(family=Family.HOOK_SHAPE)])

    def test_fingerprint_stable_and_sensitive(self):
        a = DetectorRegistry([_detector()])
        b = DetectorRegistry([_detector()])
        c = DetectorRegistry([_detector(severity=Severity.HIGH)])
        assert a.fingerprint == b.fingerprint
        assert a.fingerprint != c.fingerprint
        assert len(a.fingerprint) == 16

    def test_get_unknown_returns_none(self):
        assert DetectorRegistry.default().get("no.such") is None


class TestLoadDetectorTable:
    """Test TOML detector tables."""

    def test_extends_defaults(self, tmp_path):
        table = tmp_path / "detectors.toml"
        table.write_text(
            "[deprecated_functions]\n"
            "my_legacy_helper = \"Use MyService::helper() instead.\"\n"
            "\n"
            "[[detectors]]\n"
            "id = \"security.assert\"\n"
            "family = \"security\"\n"
            "pattern = '\\bassert\\s*\\('\n"
            "severity = \"high\"\n"
            "message = \"assert() evaluates strings\"\n",
            encoding="utf-8",
        )
        registry = load_detector_table(table)
        assert len(registry) == len(default_detectors()) + 2
        assert registry.get("deprecated.my_legacy_helper").matches("my_legacy_helper($x);")
        assert registry.get("security.assert").severity is Severity.HIGH

    def test_replace_defaults(self, tmp_path):
        table = tmp_path / "detectors.toml"
        table.write_text(
            "replace_defaults = true\n"
            "[[detectors]]\n"
            "id = \"perf.count\"\n"
            "family = \"performance\"\n"
            "pattern = 'count\\('\n"
            "severity = \"low\"\n"
            "message = \"count\"\n"
            "languages = [\"php\", \"script\"]\n",
            encoding="utf-8",
        )
        registry = load_detector_table(table)
        assert [d.id for d in registry] == ["perf.count"]
        assert registry.get("perf.count").languages == frozenset(
            {LanguageFamily.PHP, LanguageFamily.SCRIPT}
        )

    @pytest.mark.parametrize(
        "body",
        [
            "[[detectors]]\nid = \"x\"\nfamily = \"security\"\n",
            "[[detectors]]\nid = \"x\"\nfamily = \"nope\"\npattern = 'x'\nseverity = \"low\"\nmessage = \"m\"\n",
            "[[detectors]]\nid = \"x\"\nfamily = \"security\"\npattern = '('\nseverity = \"low\"\nmessage = \"m\"\n",
            "[[detectors]]\nid = \"x\"\nfamily = \"io\"\npattern = 'x'\nseverity = \"low\"\nmessage = \"m\"\n",
            "deprecated_functions = 3\n",
            "this is not toml",
        ],
    )
    def test_malformed_tables_raise(self, tmp_path, body):
        table = tmp_path / "detectors.toml"
        table.write_text(body, encoding="utf-8")
        with pytest.raises(DetectorTableError):
            load_detector_table(table)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(DetectorTableError):
            load_detector_table(tmp_path / "missing.toml")
