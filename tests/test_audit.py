from datetime import date

from payroll_ie.core.audit import AuditLogger

def test_run_history_and_stats(tmp_path):
    audit = AuditLogger(tmp_path)
    assert audit.get_run_stats()["total_runs"] == 0

    audit.log_run("run-1", date(2025, 1, 1), date(2025, 1, 31), 3, True, total_gross=4500, total_net=4037.5)
    audit.log_run(None, date(2025, 1, 1), date(2025, 1, 31), 0, False, error_message="boom")
    with open(tmp_path / "payroll_runs.jsonl", "a") as f:
        f.write("not json\n")

    history = audit.get_run_history()
    assert len(history) == 2
    stats = audit.get_run_stats()
    assert stats["successful_runs"] == 1
    assert stats["failed_runs"] == 1
    assert stats["employees_paid"] == 3
    assert stats["last_run"] == history[0]["timestamp"]

def test_status_history(tmp_path):
    audit = AuditLogger(tmp_path)
    audit.log_status_change("run-1", "processed", "paid", user_id="u1")
    audit.log_status_change("run-2", "processed", "paid")
    changes = audit.get_status_history("run-1")
    assert len(changes) == 1 and changes[0]["user_id"] == "u1"
