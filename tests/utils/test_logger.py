"""Test file-based logging."""

import json
from unittest.mock import patch

from task_reader.utils.logger import log_debug, log_error, log_info, write_log


def read_entries(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestWriteLog:
    """Test write_log."""

    def test_disabled_without_log_dir(self, tmp_path):
        """Test nothing is written when no log directory is configured."""
        with patch("task_reader.utils.logger.TASK_READER_LOG_DIR", ""):
            write_log("info", "hello")

        assert list(tmp_path.iterdir()) == []

    def test_appends_json_lines(self, tmp_path):
        """Test entries are appended per level as JSON lines."""
        log_dir = tmp_path / "logs"
        with patch("task_reader.utils.logger.TASK_READER_LOG_DIR", str(log_dir)):
            log_info("first", {"task_id": "100"})
            log_info("second")
            log_error("broken")

        info = read_entries(log_dir / "info.log")
        assert [e["message"] for e in info] == ["first", "second"]
        assert info[0]["data"] == {"task_id": "100"}
        assert "data" not in info[1]
        assert info[0]["level"] == "info"
        assert read_entries(log_dir / "error.log")[0]["message"] == "broken"

    def test_debug_requires_flag(self, tmp_path):
        """Test debug entries are only written with debug logging enabled."""
        with patch("task_reader.utils.logger.TASK_READER_LOG_DIR", str(tmp_path)):
            with patch("task_reader.utils.logger.DEBUG_LOGGING", False):
                log_debug("quiet")
            assert not (tmp_path / "debug.log").exists()

            with patch("task_reader.utils.logger.DEBUG_LOGGING", True):
                log_debug("loud")

        assert read_entries(tmp_path / "debug.log")[0]["message"] == "loud"

    def test_unwritable_directory_is_ignored(self, tmp_path):
        """Test logging never raises when the log directory is unusable."""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")

        with patch("task_reader.utils.logger.TASK_READER_LOG_DIR", str(blocker / "logs")):
            write_log("error", "nowhere to go")
