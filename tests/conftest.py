"""Shared test fixtures for Site Insight tests."""

import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def write(path: Path, text: str) -> Path:
    """Write ``text`` to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def info_yml(label: str, unit_type: str = "module", **extra) -> str:
    lines = [f"name: {label}", f"type: {unit_type}", "core_version_requirement: ^10"]
    for key, value in extra.items():
        lines.append(f"{key}: {value}")
    return "\n".join(lines) + "\n"


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files and SITE_INSIGHT_* vars out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("SITE_INSIGHT_"):
            monkeypatch.delenv(key)
    return tmp_path


@pytest.fixture
def sample_site(tmp_path):
    """A small site: one core, one contrib and one custom module, one custom theme.

    Layout::

        core/modules/node            core; would match db_query
        modules/contrib/views        contrib; one db_query call
        modules/custom/mymodule      custom; hook_init and $_GET access
        themes/custom/mytheme        custom theme; one |raw filter
    """
    root = tmp_path / "site"

    write(root / "core/modules/node/node.info.yml", info_yml("Node", package="Core"))
    write(root / "core/modules/node/node.module", "<?php\n$r = db_query('SELECT 1');\n")

    write(root / "modules/contrib/views/views.info.yml", info_yml("Views", version="'8.x-3.0'"))
    write(root / "modules/contrib/views/views.module", "<?php\n$r = db_query('SELECT 1');\n")

    write(
        root / "modules/custom/mymodule/mymodule.info.yml",
        info_yml("My Module") + "dependencies:\n  - drupal:node\n  - views:views\n",
    )
    write(
        root / "modules/custom/mymodule/mymodule.module",
        "<?php\n\nfunction mymodule_init() {\n  $x = $_GET['q'];\n}\n",
    )
    write(root / "modules/custom/mymodule/README.md", "# My Module\n")

    write(root / "themes/custom/mytheme/mytheme.info.yml", info_yml("My Theme", unit_type="theme"))
    write(root / "themes/custom/mytheme/templates/page.html.twig", "{{ content|raw }}\n")
    return root
