"""Tests for structlog configuration."""

import logging

import pytest

from depctl.config.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])


class TestConfigureLogging:
    def test_default_level(self) -> None:
        configure_logging()
        assert logging.getLogger("depctl").level == logging.WARNING

    def test_verbose(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("depctl").level == logging.DEBUG

    def test_quiet(self) -> None:
        configure_logging(quiet=True)
        assert logging.getLogger("depctl").level == logging.ERROR

    def test_verbose_beats_quiet(self) -> None:
        configure_logging(verbose=True, quiet=True)
        assert logging.getLogger("depctl").level == logging.DEBUG

    def test_single_stderr_handler(self) -> None:
        configure_logging(log_json=True)
        configure_logging(log_json=True)
        assert len(logging.getLogger().handlers) == 1

    def test_json_lines(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        logging.getLogger("depctl.test").warning("package.unresolved")
        err = capsys.readouterr().err
        assert '"event": "package.unresolved"' in err
        assert '"logger": "depctl.test"' in err
