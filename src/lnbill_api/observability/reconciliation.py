"""In-memory telemetry for payment reconciliation sweeps."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SweepRunLog:
    last_started_at: datetime | None = None
    last_completed_at: datetime | None = None
    last_updated_count: int | None = None
    last_failure_at: datetime | None = None
    last_failure_kind: str | None = None
    last_failure_reason: str | None = None


@dataclass
class ReconciliationSnapshot:
    sweep_totals: Dict[str, int]
    outcome_totals: Dict[str, int]
    runs: SweepRunLog

    def as_dict(self) -> Dict[str, object]:
        return {
            "sweeps": self.sweep_totals,
            "outcomes": self.outcome_totals,
            "runs": {
                "last_started_at": self.runs.last_started_at.isoformat() if self.runs.last_started_at else None,
                "last_completed_at": self.runs.last_completed_at.isoformat()
                if self.runs.last_completed_at
                else None,
                "last_updated_count": self.runs.last_updated_count,
                "last_failure_at": self.runs.last_failure_at.isoformat() if self.runs.last_failure_at else None,
                "last_failure_kind": self.runs.last_failure_kind,
                "last_failure_reason": self.runs.last_failure_reason,
            },
        }


@dataclass
class ReconciliationObservabilityStore:
    _lock: Lock = field(default_factory=Lock)
    _sweep_totals: Counter = field(default_factory=Counter)
    _outcome_totals: Counter = field(default_factory=Counter)
    _runs: SweepRunLog = field(default_factory=SweepRunLog)

    def record_sweep_started(self) -> None:
        with self._lock:
            self._sweep_totals["started"] += 1
            self._runs.last_started_at = _utcnow()

    def record_sweep_completed(self, updated: int) -> None:
        with self._lock:
            self._sweep_totals["completed"] += 1
            self._runs.last_completed_at = _utcnow()
            self._runs.last_updated_count = updated

    def record_outcome(self, outcome: str) -> None:
        with self._lock:
            self._outcome_totals[outcome] += 1

    def record_failure(self, kind: str, reason: str) -> None:
        with self._lock:
            self._outcome_totals[kind] += 1
            self._runs.last_failure_at = _utcnow()
            self._runs.last_failure_kind = kind
            self._runs.last_failure_reason = reason

    def snapshot(self) -> ReconciliationSnapshot:
        with self._lock:
            runs = SweepRunLog(
                last_started_at=self._runs.last_started_at,
                last_completed_at=self._runs.last_completed_at,
                last_updated_count=self._runs.last_updated_count,
                last_failure_at=self._runs.last_failure_at,
                last_failure_kind=self._runs.last_failure_kind,
                last_failure_reason=self._runs.last_failure_reason,
            )
            return ReconciliationSnapshot(
                sweep_totals=dict(self._sweep_totals),
                outcome_totals=dict(self._outcome_totals),
                runs=runs,
            )

    def reset(self) -> None:
        with self._lock:
            self._sweep_totals.clear()
            self._outcome_totals.clear()
            self._runs = SweepRunLog()


_STORE = ReconciliationObservabilityStore()


def get_reconciliation_store() -> ReconciliationObservabilityStore:
    return _STORE


__all__ = [
    "ReconciliationObservabilityStore",
    "ReconciliationSnapshot",
    "SweepRunLog",
    "get_reconciliation_store",
]
