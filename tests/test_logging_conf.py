from __future__ import annotations

import logging
from pathlib import Path

from complaint_monitor.logging_conf import available_logs, entity_logger, tail_log


def test_entity_logger_writes_to_its_own_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("COMPLAINT_MONITOR_HOME", str(tmp_path))
    logger = entity_logger("São Paulo Ltda.")
    logger.info("cycle_started")
    for handler in logging.getLogger("complaint_monitor.entity.sao-paulo-ltda").handlers:
        handler.flush()

    entity_log = (tmp_path / "logs" / "entities" / "sao-paulo-ltda.log").resolve()
    assert entity_log in list(available_logs())
    assert any("cycle_started" in line for line in tail_log(entity_log))


def test_tail_log_returns_last_lines(tmp_path: Path) -> None:
    log_file = tmp_path / "sample.log"
    log_file.write_text("".join(f"line {index}\n" for index in range(10)), encoding="utf-8")
    assert tail_log(log_file, 3) == ["line 7\n", "line 8\n", "line 9\n"]
    assert tail_log(tmp_path / "missing.log") == []
