"""
Tests for logger setup helpers.
"""
import logging

from timeline_diagram.utils.message import (
    LOG_FILE_PREFIX,
    ColorFormatter,
    Log,
    init_logger,
    purge_old_logs,
)


class TestPurgeOldLogs:

    def test_keeps_newest(self, tmp_path):
        for day in range(1, 13):
            (tmp_path / f"{LOG_FILE_PREFIX}2026-01-{day:02d}_000000.log").write_text("")
        (tmp_path / "notes.txt").write_text("")

        purge_old_logs(str(tmp_path), keep=10)
        remaining = sorted(p.name for p in tmp_path.iterdir())
        assert len(remaining) == 11
        assert f"{LOG_FILE_PREFIX}2026-01-01_000000.log" not in remaining
        assert f"{LOG_FILE_PREFIX}2026-01-12_000000.log" in remaining
        assert "notes.txt" in remaining


class TestInitLogger:

    def test_file_logging_follows_folder(self, tmp_path):
        logger = init_logger("timeline_diagram.test_file", log_folder=str(tmp_path), console_logging=False)
        try:
            assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
            assert not logger.propagate
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_repeated_init_does_not_stack_handlers(self):
        name = "timeline_diagram.test_repeat"
        first = init_logger(name, file_logging=False)
        count = len(first.handlers)
        second = init_logger(name, file_logging=False)
        assert second is first
        assert len(second.handlers) == count


class TestColorFormatter:

    def test_does_not_mutate_shared_record(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)
        formatted = ColorFormatter(fmt="%(levelname)s %(message)s").format(record)
        assert "careful" in formatted
        assert record.levelname == "WARNING"


class TestLogFacade:

    def test_set_level_by_name(self):
        logger = Log.get_logger()
        previous = logger.level
        try:
            Log.set_level("warning")
            assert logger.level == logging.WARNING
        finally:
            Log.set_level(previous)
