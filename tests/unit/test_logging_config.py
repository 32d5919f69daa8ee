from __future__ import annotations

import pytest

from tabwise.utils.logging_config import (
    LogFiles,
    Logger,
    clear_trace_id,
    get_trace_id,
    set_trace_id,
)


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    Logger.close()
    monkeypatch.setenv("TABWISE_LOG_DIR", str(tmp_path))
    yield tmp_path
    Logger.close()
    clear_trace_id()


def test_log_files_come_from_yaml():
    assert LogFiles.DETECTIONS == "detections/detections.log"
    assert LogFiles.ERROR == "errors/error.log"
    with pytest.raises(AttributeError):
        LogFiles.NOT_CONFIGURED


def test_lines_carry_trace_id_and_caller(log_dir):
    tid = set_trace_id("req-test")
    assert get_trace_id() == tid
    Logger.info("detecting", file=LogFiles.DETECTIONS)
    Logger.debug("hidden below INFO", file=LogFiles.DETECTIONS)
    Logger.close()

    text = (log_dir / "detections" / "detections.log").read_text(encoding="utf-8")
    assert "[INFO] [req-test] test_logging_config.py:" in text
    assert "detecting" in text
    assert "hidden below INFO" not in text


def test_trace_id_generated_and_cleared(log_dir):
    tid = set_trace_id()
    assert tid.startswith("req-")
    clear_trace_id()
    assert get_trace_id() is None

    Logger.warning("no request context")
    Logger.close()
    assert "[WARNING] [-]" in (log_dir / "tabwise.log").read_text(encoding="utf-8")
