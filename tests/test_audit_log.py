from __future__ import annotations

import json

from prdsmith.utils.audit_log import AuditLog


def test_disabled_log_writes_nothing(tmp_path) -> None:
    audit = AuditLog(log_dir=tmp_path, enabled=False)
    assert audit.record("PRD", "REQUEST", "openai", "gpt-5", {"input": "x"}) is None
    assert list(tmp_path.iterdir()) == []


def test_record_contains_metadata_and_payload(tmp_path) -> None:
    audit = AuditLog(log_dir=tmp_path / "logs", enabled=True)
    path = audit.record("QUESTION", "RESPONSE", "gemini", "gemini-2.5-pro", {"text": "hi"})

    assert path is not None
    assert path.name.endswith("_QUESTION_RESPONSE_gemini.json")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["purpose"] == "QUESTION"
    assert data["direction"] == "RESPONSE"
    assert data["provider"] == "gemini"
    assert data["model"] == "gemini-2.5-pro"
    assert data["payload"] == {"text": "hi"}
    assert data["timestamp"]


def test_sdk_models_are_dumped(tmp_path) -> None:
    class FakeModel:
        def model_dump(self, mode: str = "python"):
            return {"id": "resp_1", "mode": mode}

    path = AuditLog(log_dir=tmp_path, enabled=True).record("PRD", "RESPONSE", "openai", "m", FakeModel())
    assert json.loads(path.read_text(encoding="utf-8"))["payload"] == {"id": "resp_1", "mode": "json"}


def test_write_failure_does_not_interrupt(tmp_path, capsys) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    audit = AuditLog(log_dir=blocker, enabled=True)
    assert audit.record("PRD", "REQUEST", "openai", "m", {}) is None
    assert "[audit] could not write" in capsys.readouterr().out
