"""Hook and API-shape inventory.

Classifies declared functions and classes by naming convention. The result
is an inventory of what a unit exposes, never a risk signal.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import SymbolRecord

FUNCTION_RE = re.compile(r"^\s*(?:(?:public|protected|private|static|final|abstract)\s+)*function\s+&?(\w+)\s*\(")
CLASS_RE = re.compile(
    r"^\s*(?:(?:abstract|final|readonly)\s+)*class\s+(\w+)"
    r"(?:\s+extends\s+([\w\\]+))?"
    r"(?:\s+implements\s+([\w\\,\s]+))?"
)

# Hooks a unit can implement, keyed by the part after ``<unit>_``.
KNOWN_HOOKS = frozenset({
    "help", "permission", "menu", "theme", "cron", "install", "uninstall",
    "schema", "requirements", "mail", "token_info", "tokens", "form_alter",
    "page_attachments", "page_attachments_alter", "library_info_alter",
    "module_implements_alter", "views_data", "views_data_alter",
    "entity_type_alter", "entity_base_field_info", "entity_presave",
    "entity_insert", "entity_update", "entity_delete", "entity_view",
    "entity_access", "node_presave", "node_insert", "node_update",
    "node_delete", "node_view", "node_access", "user_login", "user_logout",
    "user_presave", "user_insert", "user_cancel", "theme_suggestions_alter",
    "preprocess", "rebuild", "modules_installed", "cache_flush",
    "field_widget_form_alter", "mail_alter", "query_alter", "link_alter",
})

_DYNAMIC_HOOKS = (
    re.compile(r"^form_\w+_alter$"),
    re.compile(r"^update_\d+$"),
    re.compile(r"^post_update_\w+$"),
    re.compile(r"^preprocess_\w+$"),
    re.compile(r"^theme_suggestions_\w+_alter$"),
    re.compile(r"^\w+_(?:presave|insert|update|delete|view|access)$"),
)

# Group names mirror the areas an upgrade touches.
HOOK_GROUPS: tuple[tuple[str, str], ...] = (
    ("form", "form_"),
    ("entity", "entity_"),
    ("node", "node_"),
    ("user", "user_"),
    ("theme", "theme"),
    ("theme", "preprocess"),
)


def hook_group(hook: str) -> str:
    for group, prefix in HOOK_GROUPS:
        if hook.startswith(prefix):
            return group
    return "system"


def _is_hook(suffix: str) -> bool:
    return suffix in KNOWN_HOOKS or any(p.match(suffix) for p in _DYNAMIC_HOOKS)


def classify_function(name: str, unit: str) -> tuple[str, Optional[str]]:
    """Return (role, hook) for a function or method name."""
    lowered = name.lower()
    prefix = f"{unit}_"
    if lowered.startswith(prefix):
        suffix = lowered[len(prefix):]
        if suffix.startswith("preprocess"):
            return "preprocess", suffix
        if _is_hook(suffix):
            return "hook", suffix
    if lowered.startswith("template_preprocess"):
        return "preprocess", lowered[len("template_"):]
    if lowered.endswith("_form") or lowered == "buildform":
        return "form-builder", None
    if lowered.endswith("_validate") or lowered == "validateform":
        return "validator", None
    if lowered.endswith("_submit") or lowered == "submitform":
        return "submit-handler", None
    if lowered == "getsubscribedevents":
        return "event-subscriber", None
    return "helper", None


def classify_class(name: str, parent: Optional[str], interfaces: str, file: str) -> str:
    parent = (parent or "").rsplit("\\", 1)[-1]
    if "EventSubscriberInterface" in interfaces or name.endswith("Subscriber"):
        return "event-subscriber"
    if name.endswith("Controller") or parent == "ControllerBase":
        return "controller"
    if name.endswith("Form") or parent.endswith("FormBase"):
        return "form-class"
    if "/Plugin/" in f"/{file}":
        return "plugin"
    return "service"


def extract_symbol(line: str, line_no: int, file: str, unit: str) -> Optional[SymbolRecord]:
    """Inventory the declaration on ``line``, if there is one."""
    match = FUNCTION_RE.match(line)
    if match:
        name = match.group(1)
        role, hook = classify_function(name, unit)
        return SymbolRecord(name=name, kind="function", role=role, file=file, line=line_no, hook=hook)

    match = CLASS_RE.match(line)
    if match:
        name = match.group(1)
        role = classify_class(name, match.group(2), match.group(3) or "", file)
        return SymbolRecord(name=name, kind="class", role=role, file=file, line=line_no)

    return None


def template_symbol(file: str) -> SymbolRecord:
    name = file.rsplit("/", 1)[-1]
    return SymbolRecord(name=name, kind="template", role="template", file=file, line=1)
