"""
Run Tracker
===========
Thread-safe progress record shared between the HTTP layer and the
orchestration worker thread. One run at a time.

Phases: idle → running → finished | failed
"""
import threading
from datetime import datetime, timezone
from typing import Any, Dict


class RunTracker:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state: Dict[str, Any] = self._blank()

    @staticmethod
    def _blank() -> Dict[str, Any]:
        return {
            "phase": "idle",
            "project_root": "",
            "started_at": None,
            "finished_at": None,
            "current_strategy": "",
            "current_iteration": 0,
            "initial_total": None,
            "current_total": None,
            "strategies_completed": 0,
            "status": "",
            "error": "",
        }

    def try_start(self, project_root: str) -> bool:
        """Claim the tracker for a new run. False when one is active."""
        with self._lock:
            if self._state["phase"] == "running":
                return False
            self._state = self._blank()
            self._state.update(
                phase="running",
                project_root=project_root,
                started_at=datetime.now(timezone.utc).isoformat(),
            )
            return True

    def on_initial(self, total: int) -> None:
        with self._lock:
            self._state["initial_total"] = total
            self._state["current_total"] = total

    def on_strategy(self, name: str, iteration: int) -> None:
        with self._lock:
            self._state["current_strategy"] = name
            self._state["current_iteration"] = iteration

    def on_result(self, total: int) -> None:
        with self._lock:
            self._state["current_total"] = total

    def on_strategy_done(self, completed: int) -> None:
        with self._lock:
            self._state["strategies_completed"] = completed

    def finish(self, status: str) -> None:
        with self._lock:
            self._state.update(
                phase="finished",
                status=status,
                current_strategy="",
                finished_at=datetime.now(timezone.utc).isoformat(),
            )

    def fail(self, error: str) -> None:
        with self._lock:
            self._state.update(
                phase="failed",
                error=error,
                finished_at=datetime.now(timezone.utc).isoformat(),
            )

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._state)
