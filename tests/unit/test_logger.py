import logging
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest

from catalog_diff.logging.logger import LOG_FORMAT, Log


@pytest.fixture()
def isolated_logger() -> Generator[logging.Logger, None, None]:
    logger = logging.getLogger("catalog_diff.tests.isolated")
    logger.handlers.clear()
    with patch.object(Log, "_logger", logger):
        yield logger
    logger.handlers.clear()


class TestConfigure:
    def test_sets_level_and_single_stdout_handler(self, isolated_logger: logging.Logger) -> None:
        Log.configure("debug")
        Log.configure("info")

        assert isolated_logger.level == logging.INFO
        assert isolated_logger.propagate is False
        assert len(isolated_logger.handlers) == 1
        assert isolated_logger.handlers[0].formatter._fmt == LOG_FORMAT  # type: ignore[union-attr]


class TestMessages:
    @pytest.mark.parametrize("level", ["info", "warning", "error", "debug"])
    def test_forwards_message_and_extra(self, level: str) -> None:
        logger = MagicMock()

        with patch.object(Log, "_logger", logger):
            getattr(Log, level)("[u1] hello", upload_id="u1")

        getattr(logger, level).assert_called_once_with("[u1] hello", extra={"upload_id": "u1"})

    def test_facade_methods_are_documented(self) -> None:
        for name in ("configure", "info", "warning", "error", "debug"):
            assert getattr(Log, name).__doc__
