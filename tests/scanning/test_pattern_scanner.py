"""Tests for the streaming pattern scanner."""

from site_insight.scanning import (
    DetectorRegistry,
    Family,
    Origin,
    OriginPolicy,
    PatternScanner,
    Severity,
)
from site_insight.scanning.models import SNIPPET_LIMIT, UNREADABLE_DETECTOR


def _make_scanner(**policy):
    return PatternScanner(DetectorRegistry.default(), OriginPolicy(**policy))


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestScan:
    """Test PatternScanner.scan (no origin policy)."""

    def test_mysql_query_single_finding(self, tmp_path):
        """Exactly one deprecated-api finding on the right line."""
        f = _write(
            tmp_path / "legacy.module",
            "<?php\n\nfunction legacy_fetch($q) {\n  return mysql_query($q);\n}\n",
        )
        findings = _make_scanner().scan(f)
        assert len(findings) == 1
        finding = findings[0]
        assert finding.detector_id == "deprecated.mysql_query"
        assert finding.family is Family.DEPRECATED_API
        assert finding.severity is Severity.HIGH
        assert finding.line == 4
        assert finding.snippet == "  return mysql_query($q);"

    def test_every_matching_line_reported(self, tmp_path):
        f = _write(
            tmp_path / "a.php",
            "<?php\ndrupal_set_message('a');\n$x = 1;\ndrupal_set_message('b');\n",
        )
        lines = [x.line for x in _make_scanner().scan(f) if x.detector_id == "deprecated.drupal_set_message"]
        assert lines == [2, 4]

    def test_each_matching_detector_reported_on_shared_line(self, tmp_path):
        f = _write(
            tmp_path / "a.php",
            "<?php\neval($_GET['x']);\ndrupal_set_message('done');   \n",
        )
        by_line = {}
        for finding in _make_scanner().scan(f):
            by_line.setdefault(finding.line, set()).add(finding.detector_id)
        assert {"security.eval", "security.get_input"} <= by_line[2]
        assert {"deprecated.drupal_set_message", "coding.trailing_whitespace"} <= by_line[3]

    def test_deprecated_calls_in_comments_ignored(self, tmp_path):
        f = _write(
            tmp_path / "a.php",
            "<?php\n// db_query() was removed\n/*\n * mysql_query($q) in old code\n */\n$r = db_query('x');\n",
        )
        findings = [x for x in _make_scanner().scan(f) if x.family is Family.DEPRECATED_API]
        assert [(x.detector_id, x.line) for x in findings] == [("deprecated.db_query", 6)]

    def test_restrict_to_given_detectors(self, tmp_path):
        registry = DetectorRegistry.default()
        f = _write(tmp_path / "a.php", "<?php\neval($code);\ndb_query('x');\n")
        findings = PatternScanner(registry).scan(f, [registry.get("security.eval")])
        assert [x.detector_id for x in findings] == ["security.eval"]

    def test_unscanned_extension_yields_nothing(self, tmp_path):
        f = _write(tmp_path / "notes.txt", "eval($x);\n")
        assert _make_scanner().scan(f) == []

    def test_long_lines_trimmed(self, tmp_path):
        f = _write(tmp_path / "a.php", "<?php\ndb_query('" + "x" * 500 + "');\n")
        findings = [x for x in _make_scanner().scan(f) if x.family is Family.DEPRECATED_API]
        assert len(findings[0].snippet) <= SNIPPET_LIMIT

    def test_javascript_and_template_detectors(self, tmp_path):
        js = _write(tmp_path / "app.js", "el.innerHTML = html;\n")
        twig = _write(tmp_path / "node.html.twig", "{{ body|raw }}\n")
        scanner = _make_scanner()
        assert [x.detector_id for x in scanner.scan(js)] == ["security.inner_html"]
        assert [x.detector_id for x in scanner.scan(twig)] == ["security.twig_raw"]


class TestScanFile:
    """Test per-unit scanning with the origin policy, counts and symbols."""

    def test_core_origin_runs_no_pattern_families(self, tmp_path):
        f = _write(tmp_path / "a.module", "<?php\n$x = $_REQUEST['a'];\n")
        scan = _make_scanner().scan_file(f, "a.module", Origin.CORE, "a")
        assert scan.findings == []
        assert scan.code_lines == 2

    def test_custom_origin_escalates_security(self, tmp_path):
        f = _write(tmp_path / "a.module", "<?php\n$x = $_REQUEST['a'];\n")
        scanner = _make_scanner()
        contrib = scanner.scan_file(f, "a.module", Origin.CONTRIB, "a").findings
        custom = scanner.scan_file(f, "a.module", Origin.CUSTOM, "a").findings
        assert [x.severity for x in contrib] == [Severity.MEDIUM]
        assert [x.severity for x in custom] == [Severity.HIGH]

    def test_escalation_never_lowers(self, tmp_path):
        f = _write(tmp_path / "a.module", "<?php\neval($x);\n")
        custom = _make_scanner().scan_file(f, "a.module", Origin.CUSTOM, "a").findings
        assert custom[0].severity is Severity.CRITICAL

    def test_deprecated_hook_needs_unit_prefix(self, tmp_path):
        f = _write(
            tmp_path / "mymodule.module",
            "<?php\nfunction mymodule_init() {}\nfunction helper_init() {}\n",
        )
        scan = _make_scanner().scan_file(f, "mymodule.module", Origin.CUSTOM, "mymodule")
        hooks = [(x.detector_id, x.line) for x in scan.findings if x.detector_id.startswith("deprecated.hook_")]
        assert hooks == [("deprecated.hook_init", 2)]

    def test_findings_use_relative_path(self, tmp_path):
        f = _write(tmp_path / "src/a.php", "<?php\neval($x);\n")
        scan = _make_scanner().scan_file(f, "src/a.php", Origin.CONTRIB, "a")
        assert scan.findings[0].file == "src/a.php"

    def test_line_counts(self, tmp_path):
        f = _write(
            tmp_path / "a.module",
            "<?php\n"
            "\n"
            "// one\n"
            "/**\n"
            " * Doc block.\n"
            " */\n"
            "#[Attribute]\n"
            "function a_help() {\n"
            "  return 1; /* trailing */\n"
            "}\n",
        )
        scan = _make_scanner().scan_file(f, "a.module", Origin.CONTRIB, "a")
        assert scan.total_lines == 10
        assert scan.blank_lines == 1
        assert scan.comment_lines == 4
        assert scan.code_lines == 5

    def test_decision_points_and_functions(self, tmp_path):
        f = _write(
            tmp_path / "a.module",
            "<?php\n"
            "function a_x($a, $b) {\n"
            "  if ($a && $b) {\n"
            "    return 1;\n"
            "  }\n"
            "  foreach ($a as $v) {\n"
            "  }\n"
            "}\n",
        )
        scan = _make_scanner().scan_file(f, "a.module", Origin.CONTRIB, "a")
        assert scan.functions == 1
        assert scan.decision_points == 3

    def test_symbols_inventoried(self, tmp_path):
        f = _write(
            tmp_path / "mymodule.module",
            "<?php\nfunction mymodule_form_alter(&$form) {\n}\nfunction mymodule_helper() {\n}\n",
        )
        scan = _make_scanner().scan_file(f, "mymodule.module", Origin.CUSTOM, "mymodule")
        roles = {s.name: (s.role, s.hook) for s in scan.symbols}
        assert roles == {
            "mymodule_form_alter": ("hook", "form_alter"),
            "mymodule_helper": ("helper", None),
        }

    def test_template_symbol(self, tmp_path):
        f = _write(tmp_path / "templates/page.html.twig", "<div></div>\n")
        scan = _make_scanner().scan_file(f, "templates/page.html.twig", Origin.CUSTOM, "t")
        assert [(s.kind, s.name) for s in scan.symbols] == [("template", "page.html.twig")]


class TestUnreadable:
    """Test files that cannot be decoded."""

    def test_invalid_utf8_becomes_unreadable_finding(self, tmp_path):
        f = tmp_path / "bad.php"
        f.write_bytes(b"<?php\neval($x);\n\xff\xfe\n")
        scan = _make_scanner().scan_file(f, "bad.php", Origin.CONTRIB, "a")
        assert not scan.readable
        assert [(x.detector_id, x.family, x.line) for x in scan.findings] == [
            (UNREADABLE_DETECTOR, Family.IO, 1)
        ]

    def test_nul_byte_treated_as_binary(self, tmp_path):
        f = tmp_path / "blob.inc"
        f.write_bytes(b"abc\x00def\n")
        scan = _make_scanner().scan_file(f, "blob.inc", Origin.CONTRIB, "a")
        assert not scan.readable
        assert scan.findings[0].family is Family.IO
