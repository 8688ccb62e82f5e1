"""Detector registry and the bundled detector tables.

The registry is built once per run and never mutated. The bundled tables
can be extended or replaced by a TOML file::

    replace_defaults = false

    [deprecated_functions]
    my_legacy_helper = "Use MyService::helper() instead."

    [[detectors]]
    id = "security.assert"
    family = "security"
    pattern = '\\bassert\\s*\\('
    severity = "high"
    message = "assert() with a string argument evaluates code"
    languages = ["php"]
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from ..exceptions import DetectorTableError
from ..logging_config import get_logger
from .models import Detector, Family, LanguageFamily, Severity

logger = get_logger(__name__)

PHP = frozenset({LanguageFamily.PHP})
ALL_LANGUAGES = frozenset(LanguageFamily)

# Not preceded by an identifier char, ``$``, ``->``, ``::`` or a namespace
# path: method calls and variables are different identifiers. A leading
# ``\\`` (global namespace) still matches.
_CALL_PREFIX = r"(?<![\w$:>])(?<!\w\\)"


def call_pattern(name: str) -> str:
    return _CALL_PREFIX + re.escape(name) + r"\s*\("


def definition_pattern(name: str) -> str:
    return r"\bfunction\s+&?" + re.escape(name) + r"\s*\("


# ── Deprecated functions ──────────────────────────────────────────
DEPRECATED_FUNCTIONS: dict[str, str] = {
    "drupal_set_message": "Use \\Drupal::messenger()->addMessage() instead.",
    "drupal_get_messages": "Use \\Drupal::messenger()->all() instead.",
    "db_query": "Use \\Drupal::database()->query() instead.",
    "db_select": "Use \\Drupal::database()->select() instead.",
    "db_insert": "Use \\Drupal::database()->insert() instead.",
    "db_update": "Use \\Drupal::database()->update() instead.",
    "db_delete": "Use \\Drupal::database()->delete() instead.",
    "db_merge": "Use \\Drupal::database()->merge() instead.",
    "entity_load": "Use \\Drupal::entityTypeManager()->getStorage($type)->load() instead.",
    "entity_create": "Use \\Drupal::entityTypeManager()->getStorage($type)->create() instead.",
    "node_load": "Use \\Drupal\\node\\Entity\\Node::load() instead.",
    "user_load": "Use \\Drupal\\user\\Entity\\User::load() instead.",
    "taxonomy_term_load": "Use \\Drupal\\taxonomy\\Entity\\Term::load() instead.",
    "file_load": "Use \\Drupal\\file\\Entity\\File::load() instead.",
    "variable_get": "Use \\Drupal::config()->get() instead.",
    "variable_set": "Use \\Drupal::configFactory()->getEditable()->set() instead.",
    "variable_del": "Use \\Drupal::configFactory()->getEditable()->clear() instead.",
    "format_date": "Use \\Drupal::service('date.formatter')->format() instead.",
    "drupal_render": "Use \\Drupal::service('renderer')->render() instead.",
    "check_plain": "Use \\Drupal\\Component\\Utility\\Html::escape() instead.",
    "l": "Use \\Drupal\\Core\\Link::fromTextAndUrl() instead.",
    "url": "Use \\Drupal\\Core\\Url::fromRoute() instead.",
    "watchdog": "Use \\Drupal::logger($channel) instead.",
    "drupal_goto": "Return a RedirectResponse instead.",
    "drupal_add_js": "Attach a library with #attached instead.",
    "drupal_add_css": "Attach a library with #attached instead.",
    "drupal_json_output": "Return a JsonResponse instead.",
    "module_invoke_all": "Use \\Drupal::moduleHandler()->invokeAll() instead.",
    "module_load_include": "Use \\Drupal::moduleHandler()->loadInclude() instead.",
    "drupal_get_path": "Use the extension.list.module service getPath() instead.",
    "file_create_url": "Use the file_url_generator service instead.",
    "drupal_realpath": "Use \\Drupal::service('file_system')->realpath() instead.",
    "mysql_query": "Use the database API with placeholders instead.",
    "mysql_connect": "Use the database API instead.",
    "mysql_fetch_assoc": "Use the database API instead.",
    "create_function": "Use an anonymous function instead.",
    "each": "Use foreach instead.",
    "split": "Use explode() or preg_split() instead.",
    "ereg": "Use preg_match() instead.",
    "ereg_replace": "Use preg_replace() instead.",
}

# ── Deprecated hooks ──────────────────────────────────────────────
DEPRECATED_HOOKS: dict[str, str] = {
    "init": "Use an event subscriber on KernelEvents::REQUEST instead.",
    "boot": "Use an event subscriber on KernelEvents::REQUEST instead.",
    "exit": "Use an event subscriber on KernelEvents::TERMINATE instead.",
    "field_info": "Define a FieldType plugin instead.",
    "field_widget_info": "Define a FieldWidget plugin instead.",
    "field_formatter_info": "Define a FieldFormatter plugin instead.",
}

# (id, pattern, severity, message, languages)
_SECURITY: tuple[tuple[str, str, Severity, str, frozenset], ...] = (
    ("security.eval", call_pattern("eval"), Severity.CRITICAL,
     "Dynamic code execution via eval()", PHP),
    ("security.exec", call_pattern("exec"), Severity.CRITICAL,
     "Process execution via exec()", PHP),
    ("security.system", call_pattern("system"), Severity.CRITICAL,
     "Process execution via system()", PHP),
    ("security.shell_exec", call_pattern("shell_exec"), Severity.HIGH,
     "Process execution via shell_exec()", PHP),
    ("security.passthru", call_pattern("passthru"), Severity.HIGH,
     "Process execution via passthru()", PHP),
    ("security.proc_open", call_pattern("proc_open"), Severity.HIGH,
     "Process execution via proc_open()", PHP),
    ("security.popen", call_pattern("popen"), Severity.HIGH,
     "Process execution via popen()", PHP),
    ("security.get_input", r"\$_GET\s*\[", Severity.HIGH,
     "Direct $_GET access; use the request object and sanitize input", PHP),
    ("security.post_input", r"\$_POST\s*\[", Severity.HIGH,
     "Direct $_POST access; use the request object and sanitize input", PHP),
    ("security.request_input", r"\$_REQUEST\s*\[", Severity.MEDIUM,
     "Direct $_REQUEST access; use the request object", PHP),
    ("security.cookie_input", r"\$_COOKIE\s*\[", Severity.MEDIUM,
     "Direct $_COOKIE access; use the request object", PHP),
    ("security.echo_input", r"\b(?:echo|print)\b.*\$_(?:GET|POST|REQUEST|COOKIE)\b", Severity.MEDIUM,
     "Request input written to output without escaping", PHP),
    ("security.unserialize_input", r"\bunserialize\s*\(\s*\$_(?:GET|POST|REQUEST|COOKIE)\b", Severity.HIGH,
     "unserialize() on request input", PHP),
    ("security.dynamic_include", r"\b(?:include|require)(?:_once)?\b\s*\(?\s*\$", Severity.MEDIUM,
     "include/require of a variable path", PHP),
    ("security.mysqli_query", call_pattern("mysqli_query"), Severity.MEDIUM,
     "Raw mysqli_query() bypasses the database API", PHP),
    ("security.interpolated_query", r"->query\(\s*\"[^\"]*\$\w+", Severity.MEDIUM,
     "Variable interpolated into a SQL string; use placeholders", PHP),
    ("security.remote_file", r"\b(?:file_get_contents|fopen)\s*\(\s*['\"]https?://", Severity.MEDIUM,
     "Remote file read; validate the source or use the HTTP client", PHP),
    ("security.twig_raw", r"\|\s*raw\b", Severity.MEDIUM,
     "The raw filter disables autoescaping", frozenset({LanguageFamily.TEMPLATE})),
    ("security.js_eval", r"(?<![\w$.])eval\s*\(", Severity.HIGH,
     "Dynamic code execution via eval()", frozenset({LanguageFamily.SCRIPT})),
    ("security.inner_html", r"\.innerHTML\s*=(?!=)", Severity.MEDIUM,
     "Assigning innerHTML can inject markup; use textContent or Drupal.theme", frozenset({LanguageFamily.SCRIPT})),
    ("security.document_write", r"\bdocument\.write(?:ln)?\s*\(", Severity.MEDIUM,
     "document.write() can inject markup", frozenset({LanguageFamily.SCRIPT})),
)

_CODING_STANDARD: tuple[tuple[str, str, Severity, str, frozenset], ...] = (
    ("coding.trailing_whitespace", r"[ \t]+$", Severity.LOW,
     "Trailing whitespace", ALL_LANGUAGES),
    ("coding.tab_indent", r"^ *\t", Severity.LOW,
     "Tab indentation; use two spaces", ALL_LANGUAGES),
    ("coding.line_length", r"^.{81,}$", Severity.LOW,
     "Line exceeds 80 characters", PHP),
    ("coding.control_spacing", r"\b(?:if|elseif|for|foreach|while|switch)\(", Severity.LOW,
     "Missing space after control structure keyword", PHP),
    ("coding.assignment_spacing", r"\$\w+(?:\[[^\]]*\])?(?:=(?![=>])|\s=(?![=>\s]))", Severity.LOW,
     "Missing space around assignment operator", PHP),
)

_PERFORMANCE: tuple[tuple[str, str, Severity, str, frozenset], ...] = (
    ("performance.unbounded_load",
     r"\b(?:entity_load_multiple|node_load_multiple|user_load_multiple)\s*\(\s*(?:['\"]\w+['\"]\s*)?\)",
     Severity.MEDIUM, "Loads every entity; pass ids or page through results", PHP),
    ("performance.load_all", r"->loadMultiple\s*\(\s*\)", Severity.MEDIUM,
     "loadMultiple() without ids loads every entity", PHP),
    ("performance.fetch_all", r"->fetchAll\s*\(", Severity.MEDIUM,
     "fetchAll() buffers the whole result set; add a range or iterate", PHP),
    ("performance.load_in_loop",
     r"\b(?:foreach|for|while)\b.*\b(?:node_load|user_load|entity_load|[A-Z]\w*::load)\s*\(",
     Severity.MEDIUM, "Entity load inside a loop; use loadMultiple() once", PHP),
    ("performance.sync_http", r"\b(?:drupal_http_request|curl_exec)\s*\(|httpClient\(\)\s*->\s*(?:get|post|request)\s*\(",
     Severity.MEDIUM, "Synchronous HTTP request during page build; queue or cache it", PHP),
    ("performance.sleep", call_pattern("sleep") + "|" + call_pattern("usleep"), Severity.MEDIUM,
     "sleep() blocks the request", PHP),
)


def _deprecated_function_detector(name: str, replacement: str) -> Detector:
    return Detector(
        id=f"deprecated.{name}",
        family=Family.DEPRECATED_API,
        pattern=re.compile(call_pattern(name)),
        exclude=re.compile(definition_pattern(name)),
        severity=Severity.HIGH,
        message=f"Deprecated function {name}()",
        replacement=replacement,
        languages=PHP,
    )


def _deprecated_hook_detector(hook: str, replacement: str) -> Detector:
    return Detector(
        id=f"deprecated.hook_{hook}",
        family=Family.DEPRECATED_API,
        pattern=re.compile(r"^\s*function\s+(?P<owner>\w+?)_" + re.escape(hook) + r"\s*\("),
        severity=Severity.MEDIUM,
        message=f"Implements removed hook_{hook}()",
        replacement=replacement,
        languages=PHP,
    )


def default_detectors() -> list[Detector]:
    """Build the bundled detector table."""
    detectors = [
        _deprecated_function_detector(name, replacement)
        for name, replacement in DEPRECATED_FUNCTIONS.items()
    ]
    detectors.extend(
        _deprecated_hook_detector(hook, replacement)
        for hook, replacement in DEPRECATED_HOOKS.items()
    )
    for family, table in (
        (Family.SECURITY, _SECURITY),
        (Family.CODING_STANDARD, _CODING_STANDARD),
        (Family.PERFORMANCE, _PERFORMANCE),
    ):
        for detector_id, pattern, severity, message, languages in table:
            detectors.append(
                Detector(
                    id=detector_id,
                    family=family,
                    pattern=re.compile(pattern),
                    severity=severity,
                    message=message,
                    languages=languages,
                )
            )
    return detectors


class DetectorRegistry:
    """Immutable, ordered set of detectors indexed by language family."""

    def __init__(self, detectors: Iterable[Detector]):
        ordered = tuple(sorted(detectors, key=lambda d: d.id))
        seen: set[str] = set()
        for detector in ordered:
            if detector.id in seen:
                raise DetectorTableError("duplicate detector id", detector_id=detector.id)
            if detector.family in (Family.HOOK_SHAPE, Family.IO):
                raise DetectorTableError(
                    f"family '{detector.family.value}' cannot be pattern matched",
                    detector_id=detector.id,
                )
            seen.add(detector.id)
        self._detectors = ordered
        self._by_language = {
            language: tuple(d for d in ordered if d.applies_to(language))
            for language in LanguageFamily
        }
        self._fingerprint = self._compute_fingerprint()

    @classmethod
    def default(cls) -> "DetectorRegistry":
        return cls(default_detectors())

    def __iter__(self) -> Iterator[Detector]:
        return iter(self._detectors)

    def __len__(self) -> int:
        return len(self._detectors)

    def get(self, detector_id: str) -> Optional[Detector]:
        for detector in self._detectors:
            if detector.id == detector_id:
                return detector
        return None

    def for_language(self, language: LanguageFamily) -> tuple[Detector, ...]:
        return self._by_language[language]

    @property
    def fingerprint(self) -> str:
        """Stable hash of the table; changes whenever any rule changes."""
        return self._fingerprint

    def _compute_fingerprint(self) -> str:
        digest = hashlib.sha256()
        for d in self._detectors:
            parts = [
                d.id,
                d.family.value,
                d.pattern.pattern,
                d.exclude.pattern if d.exclude is not None else "",
                d.severity.value,
                ",".join(sorted(lang.value for lang in d.languages)),
                d.message,
                d.replacement or "",
            ]
            digest.update("\x1f".join(parts).encode("utf-8"))
            digest.update(b"\x1e")
        return digest.hexdigest()[:16]


def load_detector_table(path: Path) -> DetectorRegistry:
    """Build a registry from a TOML detector table.

    Raises:
        DetectorTableError: If the file is unreadable or any entry is malformed
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise DetectorTableError(str(e), source=path)

    detectors: dict[str, Detector] = {}
    if not data.get("replace_defaults", False):
        detectors.update((d.id, d) for d in default_detectors())

    deprecated = data.get("deprecated_functions", {})
    if not isinstance(deprecated, dict):
        raise DetectorTableError("[deprecated_functions] must be a table", source=path)
    for name, replacement in deprecated.items():
        if not re.fullmatch(r"[A-Za-z_]\w*", name) or not isinstance(replacement, str):
            raise DetectorTableError("invalid deprecated function entry", detector_id=name, source=path)
        detector = _deprecated_function_detector(name, replacement)
        detectors[detector.id] = detector

    entries = data.get("detectors", [])
    if not isinstance(entries, list):
        raise DetectorTableError("[[detectors]] must be an array of tables", source=path)
    for entry in entries:
        detector = _parse_entry(entry, path)
        detectors[detector.id] = detector

    registry = DetectorRegistry(detectors.values())
    logger.info(f"Loaded {len(registry)} detectors from {path}")
    return registry


def _parse_entry(entry: Any, source: Path) -> Detector:
    if not isinstance(entry, dict):
        raise DetectorTableError("detector entry must be a table", source=source)

    detector_id = entry.get("id")
    if not isinstance(detector_id, str) or not detector_id:
        raise DetectorTableError("detector entry needs a string 'id'", source=source)

    missing = [key for key in ("family", "pattern", "severity", "message") if key not in entry]
    if missing:
        raise DetectorTableError(
            f"missing keys: {', '.join(missing)}", detector_id=detector_id, source=source
        )

    try:
        family = Family(entry["family"])
        severity = Severity(entry["severity"])
        languages = frozenset(LanguageFamily(lang) for lang in entry.get("languages", ["php"]))
        pattern = re.compile(entry["pattern"])
        exclude = re.compile(entry["exclude"]) if entry.get("exclude") else None
    except (ValueError, TypeError, re.error) as e:
        raise DetectorTableError(str(e), detector_id=detector_id, source=source)

    if not languages:
        raise DetectorTableError("languages must not be empty", detector_id=detector_id, source=source)

    return Detector(
        id=detector_id,
        family=family,
        pattern=pattern,
        severity=severity,
        message=str(entry["message"]),
        languages=languages,
        replacement=entry.get("replacement"),
        exclude=exclude,
    )
