"""
Tests for logging setup.
"""

import logging

import structlog

from streamput.logging import get_logger, is_configured, setup_logging


class TestSetupLogging:
    def teardown_method(self):
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def test_sets_root_level(self):
        setup_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        assert is_configured()

    def test_quiets_boto(self):
        setup_logging("DEBUG")
        assert logging.getLogger("botocore").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_json_output(self, capsys):
        setup_logging("INFO", json=True)
        get_logger("streamput.test").info("part uploaded", part=3)

        err = capsys.readouterr().err
        assert '"event": "part uploaded"' in err
        assert '"part": 3' in err

    def test_single_handler(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1
