"""Tests for the process-wide Logger: sinks, routing, reload and lifecycle."""
import logging
from pathlib import Path

import pytest
from loguru import logger

from tierconf.core.exceptions import (
    FilterSyntaxError,
    LoggerAlreadyInitializedError,
    LoggerError,
    ReloadError,
    SinkPathError,
)
from tierconf.logger import Logger, LoggerParams, active_logger


def read_single(directory: Path, pattern: str) -> str:
    files = list(directory.glob(pattern))
    assert len(files) == 1, files
    return files[0].read_text(encoding="utf-8")


class TestStderrSink:
    """Tests for the default stderr destination."""

    def test_logs_to_stderr(self, capsys):
        # Arrange
        Logger.init(LoggerParams(default_level="info"))

        # Act
        logger.bind(target="app").info("hello stderr")

        # Assert
        err = capsys.readouterr().err
        assert "Started logging" in err
        assert "hello stderr" in err
        assert "app:" in err

    def test_default_level_gates_events(self, capsys):
        # Arrange
        Logger.init(LoggerParams(default_level="warn"))

        # Act
        logger.info("quiet info")
        logger.warning("loud warning")

        # Assert
        err = capsys.readouterr().err
        assert "quiet info" not in err
        assert "loud warning" in err

    def test_directive_overrides_default(self, capsys):
        # Arrange
        Logger.init(LoggerParams(default_level="error", filter={"db": "debug"}))

        # Act
        logger.bind(target="db::query").debug("db detail")
        logger.bind(target="http").warning("http warning")

        # Assert
        err = capsys.readouterr().err
        assert "db detail" in err
        assert "http warning" not in err

    def test_reload_swaps_filter(self, capsys):
        # Arrange
        log = Logger.init(LoggerParams(default_level="info"))
        logger.debug("before reload")

        # Act
        log.reload(LoggerParams(default_level="debug"))
        logger.debug("after reload")

        # Assert
        err = capsys.readouterr().err
        assert "before reload" not in err
        assert "after reload" in err

    def test_invalid_reload_keeps_old_filter(self, capsys):
        # Arrange
        log = Logger.init(LoggerParams(default_level="info"))

        # Act
        with pytest.raises(FilterSyntaxError):
            log.reload(LoggerParams(default_level="debug", filter={"x": "loud"}))
        logger.debug("still filtered")
        logger.info("still shown")

        # Assert
        err = capsys.readouterr().err
        assert "still filtered" not in err
        assert "still shown" in err


class TestFileSinks:
    """Tests for daily files and add_filter routing."""

    def test_single_file_receives_everything(self, tmp_path):
        # Arrange
        params = LoggerParams(default_level="info", log_file_prefix=Path("logs/app.log"))
        log = Logger.init(params, base_dir=tmp_path)

        # Act
        logger.bind(target="sql").info("a query")
        logger.bind(target="http").info("a request")
        log.shutdown()

        # Assert
        content = read_single(tmp_path / "logs", "app.log.*")
        assert "Started logging to file logs/app.log" in content
        assert "a query" in content
        assert "a request" in content

    def test_add_filter_moves_matching_events(self, tmp_path, capsys):
        # Arrange
        params = LoggerParams(
            default_level="info",
            log_file_prefix=Path("app.log"),
            add_log_file_prefix=Path("sql.log"),
            add_filter=["sql"],
        )
        log = Logger.init(params, base_dir=tmp_path)

        # Act
        logger.bind(target="app::sqlx").info("select 1")
        logger.bind(target="http").info("get /")
        log.shutdown()

        # Assert
        primary = read_single(tmp_path, "app.log.*")
        additional = read_single(tmp_path, "sql.log.*")
        err = capsys.readouterr().err
        assert "get /" in primary and "select 1" not in primary
        assert "select 1" in additional and "get /" not in additional
        assert "get /" in err and "select 1" not in err

    def test_file_records_carry_level_and_target(self, tmp_path):
        # Arrange
        params = LoggerParams(default_level="info", log_file_prefix=Path("app.log"))
        log = Logger.init(params, base_dir=tmp_path)

        # Act
        logger.bind(target="billing").error("charge failed")
        log.shutdown()

        # Assert
        line = [l for l in read_single(tmp_path, "app.log.*").splitlines() if "charge failed" in l][0]
        assert "ERROR" in line
        assert "billing:" in line


class TestLifecycle:
    """Tests for init and shutdown rules."""

    def test_second_init_while_live_fails(self):
        # Arrange
        Logger.init(LoggerParams(default_level="info"))

        # Act / Assert
        with pytest.raises(LoggerAlreadyInitializedError):
            Logger.init(LoggerParams(default_level="info"))

    def test_init_after_shutdown_is_allowed(self):
        # Arrange
        Logger.init(LoggerParams(default_level="info")).shutdown()

        # Act
        log = Logger.init(LoggerParams(default_level="debug"))

        # Assert
        assert active_logger() is log

    def test_double_shutdown_fails(self):
        # Arrange
        log = Logger.init(LoggerParams(default_level="info"))
        log.shutdown()

        # Act / Assert
        with pytest.raises(LoggerError):
            log.shutdown()
        assert active_logger() is None

    def test_reload_after_shutdown_fails(self):
        # Arrange
        log = Logger.init(LoggerParams(default_level="info"))
        log.shutdown()

        # Act / Assert
        with pytest.raises(ReloadError):
            log.reload(LoggerParams(default_level="debug"))

    def test_unopenable_file_keeps_existing_handlers(self, tmp_path):
        # Arrange
        (tmp_path / "blocker").write_text("not a directory", encoding="utf-8")
        seen = []
        sink_id = logger.add(seen.append, format="{message}")
        params = LoggerParams(default_level="info", log_file_prefix=Path("blocker/app.log"))

        # Act
        try:
            with pytest.raises(SinkPathError):
                Logger.init(params, base_dir=tmp_path)
            logger.info("after failed init")
        finally:
            logger.remove(sink_id)

        # Assert
        assert active_logger() is None
        assert any("after failed init" in message for message in seen)

    def test_invalid_level_leaves_no_logger(self):
        with pytest.raises(FilterSyntaxError):
            Logger.init(LoggerParams(default_level="loud"))

        assert active_logger() is None

    def test_context_manager_shuts_down(self):
        # Act
        with Logger.init(LoggerParams(default_level="info")) as log:
            assert active_logger() is log

        # Assert
        assert log.closed
        assert active_logger() is None


class TestStdLoggingCapture:
    """Tests for routing stdlib logging records."""

    def test_stdlib_records_use_logger_name_as_target(self, capsys):
        # Arrange
        Logger.init(LoggerParams(default_level="info"))

        # Act
        logging.getLogger("thirdparty.client").warning("from stdlib")

        # Assert
        err = capsys.readouterr().err
        assert "from stdlib" in err
        assert "thirdparty.client" in err

    def test_stdlib_records_obey_directives(self, capsys):
        # Arrange
        Logger.init(LoggerParams(default_level="info", filter={"thirdparty": "error"}))

        # Act
        logging.getLogger("thirdparty.client").warning("muted warning")

        # Assert
        assert "muted warning" not in capsys.readouterr().err

    def test_capture_can_be_disabled(self):
        # Arrange
        root = logging.getLogger()
        before = list(root.handlers)

        # Act
        with Logger.init(LoggerParams(default_level="info", capture_std_logging=False)):
            during = list(root.handlers)

        # Assert
        assert during == before


class TestSpans:
    """Tests for span enter/close timings."""

    def test_span_logs_enter_and_close(self, capsys):
        # Arrange
        log = Logger.init(LoggerParams(default_level="trace", span_timings=True))

        # Act
        with log.span("import"):
            logger.info("working")

        # Assert
        err = capsys.readouterr().err
        assert "import: enter" in err
        assert "import: close time.busy=" in err
        assert err.index("import: enter") < err.index("working") < err.index("import: close")

    def test_span_silent_when_disabled(self, capsys):
        # Arrange
        log = Logger.init(LoggerParams(default_level="trace"))

        # Act
        with log.span("import"):
            pass

        # Assert
        assert "import: enter" not in capsys.readouterr().err
