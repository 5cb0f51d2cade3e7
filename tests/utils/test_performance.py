"""Test performance monitoring utilities."""

import unittest.mock as mock

import pytest

from task_reader.utils.performance import (
    get_duration,
    log_operation_time,
    start_timer,
    timed_operation,
)

patch = mock.patch


class TestPerformanceTimers:
    """Test basic timer functionality."""

    def test_start_timer_returns_float(self):
        """Test start_timer returns a float timestamp."""
        assert isinstance(start_timer(), float)

    def test_get_duration_calculation(self):
        """Test get_duration calculates time difference correctly."""
        with patch("task_reader.utils.performance.time.perf_counter") as mock_time:
            mock_time.side_effect = [100.0, 105.5]

            start_time = start_timer()
            assert get_duration(start_time) == 5.5


class TestOperationLogging:
    """Test operation timing and logging functionality."""

    @patch("task_reader.utils.performance.log_debug")
    @patch("task_reader.utils.performance.log_info")
    def test_log_operation_time_debug_level(self, mock_log_info, mock_log_debug):
        """Test log_operation_time with debug level."""
        with patch("task_reader.utils.performance.time.perf_counter") as mock_time:
            mock_time.side_effect = [100.0, 102.5]

            log_operation_time("test_operation", start_timer(), "debug")

        mock_log_debug.assert_called_once_with(
            "Performance: test_operation completed in 2.500s"
        )
        mock_log_info.assert_not_called()

    @patch("task_reader.utils.performance.log_info")
    def test_log_operation_time_info_level_with_extra(self, mock_log_info):
        """Test log_operation_time with info level and extra info."""
        with patch("task_reader.utils.performance.time.perf_counter") as mock_time:
            mock_time.side_effect = [10.0, 10.25]

            log_operation_time("scan", start_timer(), "info", "3 roots")

        mock_log_info.assert_called_once_with(
            "Performance: scan completed in 0.250s (3 roots)"
        )

    @patch("task_reader.utils.performance.log_operation_time")
    def test_timed_operation_logs_on_error(self, mock_log):
        """Test timed_operation logs even when the body raises."""
        with pytest.raises(KeyError):
            with timed_operation("failing"):
                raise KeyError("x")

        assert mock_log.call_args[0][0] == "failing"

    @patch(
        "task_reader.utils.performance.log_operation_time",
        side_effect=OSError("disk full"),
    )
    def test_timed_operation_ignores_logging_failures(self, mock_log):
        """Test a logging failure does not break the timed operation."""
        with timed_operation("query") as start_time:
            assert isinstance(start_time, float)

        mock_log.assert_called_once()
