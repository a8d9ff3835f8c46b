"""Unit tests for logging configuration."""

import json
from pathlib import Path

from loguru import logger

from ems_api.core.logging import LOG_FILE_NAME, setup_logging


class TestLogging:
    """Tests for Loguru logging setup."""

    def test_setup_logging_does_not_raise(self) -> None:
        setup_logging("DEBUG")
        setup_logging("INFO")
        setup_logging("WARNING")

    def test_setup_logging_case_insensitive(self) -> None:
        setup_logging("info")
        setup_logging("debug")

    def test_file_sink_created_in_log_dir(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging("INFO", log_dir=str(log_dir))
        logger.info("file sink check")
        setup_logging("INFO")

        log_file = log_dir / LOG_FILE_NAME
        assert log_file.exists()
        assert "file sink check" in log_file.read_text()

    def test_level_filters_file_sink(self, tmp_path: Path) -> None:
        setup_logging("WARNING", log_dir=str(tmp_path))
        logger.info("quiet")
        logger.warning("loud")
        setup_logging("INFO")

        content = (tmp_path / LOG_FILE_NAME).read_text()
        assert "loud" in content
        assert "quiet" not in content

    def test_json_records(self, tmp_path: Path) -> None:
        setup_logging("INFO", log_dir=str(tmp_path), json_logs=True)
        logger.info("structured")
        setup_logging("INFO")

        line = (tmp_path / LOG_FILE_NAME).read_text().splitlines()[0]
        assert json.loads(line)["record"]["message"] == "structured"
