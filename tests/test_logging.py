"""Tests for logging setup."""

import logging

import pytest

from site_insight.logging_config import LOGGER_NAME, get_logger, level_for, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger(LOGGER_NAME).setLevel(logging.NOTSET)


class TestLevels:
    @pytest.mark.parametrize(
        "verbosity,level",
        [("quiet", logging.ERROR), ("normal", logging.WARNING), ("verbose", logging.DEBUG)],
    )
    def test_level_for(self, verbosity, level):
        assert level_for(verbosity) == level

    def test_unknown_verbosity(self):
        with pytest.raises(ValueError):
            level_for("loud")

    def test_setup_sets_level(self):
        assert setup_logging("verbose").level == logging.DEBUG
        assert setup_logging("quiet").level == logging.ERROR


class TestGetLogger:
    def test_namespacing(self):
        assert get_logger().name == LOGGER_NAME
        assert get_logger("site_insight.runner").name == "site_insight.runner"
        assert get_logger("scanning").name == "site_insight.scanning"


class TestLogFile:
    def test_records_written(self, tmp_path):
        path = tmp_path / "run.log"
        setup_logging("normal", log_file=str(path))
        get_logger("runner").warning("Unit task 'views' exceeded 1s")
        for handler in logging.getLogger().handlers:
            handler.flush()
        text = path.read_text(encoding="utf-8")
        assert "WARNING" in text
        assert "site_insight.runner: Unit task 'views' exceeded 1s" in text
