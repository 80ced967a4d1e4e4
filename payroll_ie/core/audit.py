"""
Audit logging for payroll runs and status changes.
Every processing attempt is appended to a JSONL trail, successful or not.
"""
import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from payroll_ie.core.config import settings

class AuditLogger:
    """Audit logger for tracking payroll run attempts and status changes."""

    def __init__(self, audit_dir: Optional[Union[str, Path]] = None):
        self.audit_dir = Path(audit_dir or Path(settings.AUDIT_LOG_PATH) / "audit")
        self.audit_dir.mkdir(parents=True, exist_ok=True)

        self.runs_log = self.audit_dir / "payroll_runs.jsonl"
        self.changes_log = self.audit_dir / "status_changes.jsonl"

    def _append(self, path: Path, entry: Dict[str, Any]):
        with open(path, "a") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    def log_run(
        self,
        run_id: Optional[str],
        period_start,
        period_end,
        employee_count: int,
        success: bool,
        total_gross=None,
        total_net=None,
        user_id: Optional[str] = None,
        error_message: Optional[str] = None
    ):
        """Log a payroll processing attempt."""
        self._append(self.runs_log, {
            "timestamp": datetime.now().isoformat(),
            "run_id": run_id,
            "period_start": period_start,
            "period_end": period_end,
            "employee_count": employee_count,
            "success": success,
            "total_gross": total_gross,
            "total_net": total_net,
            "user_id": user_id,
            "error_message": error_message,
        })

    def log_status_change(self, run_id: str, old_status: str, new_status: str, user_id: Optional[str] = None):
        self._append(self.changes_log, {
            "timestamp": datetime.now().isoformat(),
            "run_id": run_id,
            "old_status": old_status,
            "new_status": new_status,
            "user_id": user_id,
        })

    def _read(self, path: Path) -> List[Dict[str, Any]]:
        if not path.exists():
            return []
        entries = []
        with open(path, "r") as f:
            for line in f:
                try:
                    entries.append(json.loads(line.strip()))
                except json.JSONDecodeError:
                    continue
        return entries

    def get_run_history(self, days: int = 30) -> List[Dict[str, Any]]:
        """Get payroll run attempts for the last N days, newest first."""
        cutoff_date = datetime.now() - timedelta(days=days)
        history = []
        for entry in self._read(self.runs_log):
            try:
                if datetime.fromisoformat(entry["timestamp"]) >= cutoff_date:
                    history.append(entry)
            except (KeyError, ValueError):
                continue
        history.sort(key=lambda x: x["timestamp"], reverse=True)
        return history

    def get_run_stats(self) -> Dict[str, Any]:
        history = self.get_run_history(days=90)
        if not history:
            return {
                "total_runs": 0,
                "successful_runs": 0,
                "failed_runs": 0,
                "employees_paid": 0,
                "last_run": None,
            }

        successful = [h for h in history if h.get("success")]
        return {
            "total_runs": len(history),
            "successful_runs": len(successful),
            "failed_runs": len(history) - len(successful),
            "employees_paid": sum(h.get("employee_count", 0) for h in successful),
            "last_run": history[0]["timestamp"],
        }

    def get_status_history(self, run_id: str) -> List[Dict[str, Any]]:
        changes = [e for e in self._read(self.changes_log) if e.get("run_id") == run_id]
        changes.sort(key=lambda x: x["timestamp"], reverse=True)
        return changes
