"""Tests for logging and progress utilities."""

import io
import logging

import pytest

from moverec.exceptions import OperationCanceled
from moverec.utils.logging_utils import get_logger, setup_logger
from moverec.utils.progress import CancellationToken


class TestLogging:
    def test_get_logger_is_namespaced(self):
        assert get_logger("ARI").name == "moverec.ARI"
        assert get_logger("moverec.core.runner").name == "moverec.core.runner"
        assert get_logger("moverec").name == "moverec"

    def test_setup_logger_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "moverec.log"
        logger = setup_logger("moverec.test_file", level="debug", log_file=str(log_file))
        try:
            logger.debug("hello")
            for handler in logger.handlers:
                handler.flush()

            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 2
            assert "hello" in log_file.read_text()
        finally:
            for handler in logger.handlers:
                handler.close()
            logger.handlers = []

    def test_setup_logger_replaces_handlers(self):
        logger = setup_logger("moverec.test_twice")
        logger = setup_logger("moverec.test_twice", format_string="%(message)s")
        assert len(logger.handlers) == 1
        logger.handlers = []

    def test_setup_logger_closes_previous_file_handler(self, tmp_path):
        log_file = tmp_path / "first.log"
        logger = setup_logger("moverec.test_reconfigure", log_file=str(log_file))
        (file_handler,) = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]

        logger = setup_logger("moverec.test_reconfigure", level="WARNING")
        try:
            assert file_handler.stream is None
            assert len(logger.handlers) == 1
            assert not isinstance(logger.handlers[0], logging.FileHandler)
        finally:
            for handler in logger.handlers:
                handler.close()
            logger.handlers = []

    def test_setup_logger_console_stream(self):
        stream = io.StringIO()
        logger = setup_logger("moverec.test_stream", format_string="%(message)s", stream=stream)
        try:
            logger.info("to the stream")
            assert stream.getvalue() == "to the stream\n"
        finally:
            logger.handlers = []


class TestCancellationToken:
    def test_not_canceled_by_default(self):
        token = CancellationToken()
        token.check_canceled()
        assert not token.is_canceled

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.is_canceled
        with pytest.raises(OperationCanceled):
            token.check_canceled()

    def test_progress_is_clamped(self):
        seen = []
        token = CancellationToken(on_progress=seen.append)
        token.report_progress(-0.5)
        token.report_progress(0.25)
        token.report_progress(3.0)

        assert seen == [0.0, 0.25, 1.0]
        assert token.fraction == 1.0
