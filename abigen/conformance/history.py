"""Conformance history store -- persists conformance reports to disk.

Stores one JSON file per contract address under ~/.abigen/conformance_history/
so that earlier detections can be reviewed without probing again.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path


@dataclass
class ConformanceHistoryEntry:
    """A single conformance check record."""

    address: str
    interface_name: str
    verdict: str
    ran_at: str
    query_passed: int = 0
    query_total: int = 0
    send_passed: int = 0
    send_total: int = 0
    failed_method: str = ""
    total_duration_ms: int = 0

    @property
    def implemented(self) -> bool:
        return self.verdict == "implemented"


class ConformanceHistoryStore:
    """Persists and retrieves conformance reports.

    Storage layout:
        ~/.abigen/conformance_history/<address>.json
    Each file is a JSON array of ConformanceHistoryEntry dicts. The prober
    calls record_report from a worker thread, off the event loop.
    """

    def __init__(self, base_dir: str | Path | None = None):
        if base_dir is None:
            base_dir = Path.home() / ".abigen" / "conformance_history"
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _history_path(self, address: str) -> Path:
        # Raw addresses contain ':', which is not portable in file names
        safe_name = address.replace(":", "_").replace("/", "_").replace("\\", "_")
        return self.base_dir / f"{safe_name}.json"

    def record_report(self, report) -> ConformanceHistoryEntry:
        """Record a ConformanceReport (or any object with the same attributes)."""
        query_outcomes = getattr(report, "query_outcomes", [])
        send_outcomes = getattr(report, "send_outcomes", [])
        verdict = getattr(report, "verdict", "not_implemented")
        entry = ConformanceHistoryEntry(
            address=report.address,
            interface_name=report.interface_name,
            verdict=getattr(verdict, "value", verdict),
            ran_at=datetime.now(timezone.utc).isoformat(),
            query_passed=sum(1 for o in query_outcomes if o.passed),
            query_total=len(query_outcomes),
            send_passed=sum(1 for o in send_outcomes if o.passed),
            send_total=len(send_outcomes),
            failed_method=getattr(report, "failed_method", ""),
            total_duration_ms=getattr(report, "total_duration_ms", 0),
        )

        history = self._load(entry.address)
        history.append(asdict(entry))
        self._save(entry.address, history)

        return entry

    def get_history(
        self, address: str, interface_name: str | None = None
    ) -> list[ConformanceHistoryEntry]:
        """Get past checks for an address, most recent first."""
        entries = []
        for item in self._load(address):
            try:
                entry = ConformanceHistoryEntry(**item)
            except TypeError:
                continue
            if interface_name is None or entry.interface_name == interface_name:
                entries.append(entry)
        return sorted(entries, key=lambda e: e.ran_at, reverse=True)

    def last_implemented(self, address: str) -> str | None:
        """Interface name of the most recent IMPLEMENTED verdict, if any."""
        return next((e.interface_name for e in self.get_history(address) if e.implemented), None)

    def _load(self, address: str) -> list[dict]:
        path = self._history_path(address)
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                if isinstance(data, list):
                    return data
            except (json.JSONDecodeError, OSError):
                pass
        return []

    def _save(self, address: str, history: list[dict]):
        path = self._history_path(address)
        with open(path, "w") as f:
            json.dump(history, f, indent=2)
