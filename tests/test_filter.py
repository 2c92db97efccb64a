"""Unit tests for level parsing, directive matching and the reload handle."""
import threading

import pytest

from tierconf.core.exceptions import FilterSyntaxError, ReloadError
from tierconf.logger.filter import (
    DEBUG,
    ERROR,
    INFO,
    OFF,
    TRACE,
    WARN,
    FilterHandle,
    compile_filter,
    parse_level,
)


class TestParseLevel:
    """Tests for level names."""

    @pytest.mark.parametrize("token, expected", [
        ("trace", TRACE),
        ("debug", DEBUG),
        ("info", INFO),
        ("warn", WARN),
        ("warning", WARN),
        ("error", ERROR),
        ("off", OFF),
        (" INFO ", INFO),
    ])
    def test_known_levels(self, token, expected):
        assert parse_level(token) == expected

    def test_unknown_level(self):
        with pytest.raises(FilterSyntaxError, match="verbose"):
            parse_level("verbose")

    def test_levels_are_ordered(self):
        assert TRACE < DEBUG < INFO < WARN < ERROR < OFF


class TestLevelFilter:
    """Tests for compiled filters."""

    def test_directives_override_default(self):
        # Arrange
        level_filter = compile_filter("info", [("db", "debug"), ("db::pool", "error")])

        # Assert
        assert level_filter.enabled("db::query", DEBUG)
        assert not level_filter.enabled("db::pool", WARN)
        assert level_filter.enabled("db::pool", ERROR)
        assert not level_filter.enabled("http", DEBUG)
        assert level_filter.enabled("http", INFO)

    def test_single_directive_gates_matching_target(self):
        # Arrange
        level_filter = compile_filter("info", [("db", "warn")])

        # Assert
        assert level_filter.enabled("db::pool", WARN)
        assert not level_filter.enabled("db::pool", DEBUG)

    def test_matching_is_by_substring(self):
        level_filter = compile_filter("error", [("sql", "debug")])

        assert level_filter.enabled("app.sqlx.pool", DEBUG)

    def test_longest_directive_wins_regardless_of_order(self):
        # Arrange
        level_filter = compile_filter("info", [("db::pool", "error"), ("db", "trace")])

        # Assert
        assert level_filter.level_for("db::pool::conn") == ERROR
        assert level_filter.level_for("db::other") == TRACE

    def test_equal_length_tie_goes_to_later_directive(self):
        # Arrange
        level_filter = compile_filter("info", [("ab", "error"), ("bc", "debug")])

        # Assert
        assert level_filter.level_for("abc") == DEBUG

    def test_off_disables_target(self):
        # Arrange
        level_filter = compile_filter("trace", [("noisy", "off")])

        # Assert
        assert not level_filter.enabled("noisy.module", ERROR)
        assert level_filter.enabled("quiet.module", TRACE)

    def test_invalid_directive_aborts_compilation(self):
        with pytest.raises(FilterSyntaxError):
            compile_filter("info", [("db", "debug"), ("http", "loud")])

    def test_invalid_default_aborts_compilation(self):
        with pytest.raises(FilterSyntaxError):
            compile_filter("chatty")

    def test_level_cached_per_target(self):
        # Arrange
        level_filter = compile_filter("info", [("db", "debug")])

        # Act
        first = level_filter.level_for("db.query")
        second = level_filter.level_for("db.query")

        # Assert
        assert first == second == DEBUG


class TestFilterHandle:
    """Tests for swapping filters at runtime."""

    def test_reload_changes_decisions(self):
        # Arrange
        handle = FilterHandle(compile_filter("info"))
        assert not handle.enabled("app", DEBUG)

        # Act
        handle.reload(compile_filter("debug"))

        # Assert
        assert handle.enabled("app", DEBUG)

    def test_reload_after_close_fails(self):
        # Arrange
        handle = FilterHandle(compile_filter("info"))
        handle.close()

        # Act / Assert
        with pytest.raises(ReloadError):
            handle.reload(compile_filter("debug"))
        assert handle.current.default_level == INFO

    def test_reads_see_old_or_new_filter_during_reloads(self):
        # Arrange
        old, new = compile_filter("error"), compile_filter("trace")
        handle = FilterHandle(old)
        seen = set()
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                seen.add(handle.current.default_level)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()

        # Act
        for index in range(200):
            handle.reload(new if index % 2 == 0 else old)
        stop.set()
        for thread in threads:
            thread.join()

        # Assert
        assert seen <= {ERROR, TRACE}
