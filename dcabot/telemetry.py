#!/usr/bin/env python3
"""
Telemetry Collector

Counters, timings and a ring buffer of recent events for the scheduler
process. Optionally persisted to a JSON snapshot so a monitor in another
process can read it.
"""

import json
import logging
import os
import tempfile
import threading
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


def atomic_write_json(filepath: Path, data: Dict[str, Any]):
    """
    Atomically write JSON data to file

    Uses temp file + rename so readers never see a partial write.
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(mode='w', dir=filepath.parent, delete=False,
                                     suffix='.tmp') as tmp_file:
        tmp_path = Path(tmp_file.name)
        json.dump(data, tmp_file, indent=2, default=str)
    os.replace(tmp_path, filepath)


class TelemetryCollector:
    """
    Thread-safe metric collection

    Features:
    - Counters keyed by name and tags
    - Timing statistics (count / total / max)
    - Ring buffers for recent events and errors
    - Optional JSON persistence
    """

    _default = None
    _default_lock = threading.Lock()

    def __init__(self, enabled: bool = True, persistence_path: Optional[str] = None):
        self._lock = threading.Lock()
        self.enabled = enabled
        self.counters: Dict[str, float] = {}
        self.timers: Dict[str, Dict[str, float]] = {}
        self.events: Deque[Dict[str, Any]] = deque(maxlen=1000)
        self.errors: Deque[Dict[str, Any]] = deque(maxlen=200)
        self.started_at = datetime.now(timezone.utc)
        self.metrics_file: Optional[Path] = None
        if persistence_path:
            self.configure(enabled, persistence_path)

    @classmethod
    def instance(cls) -> 'TelemetryCollector':
        """Process-wide collector"""
        if cls._default is None:
            with cls._default_lock:
                if cls._default is None:
                    cls._default = cls()
        return cls._default

    def configure(self, enabled: bool = True, persistence_path: Optional[str] = None):
        """
        Configure telemetry collector

        Args:
            enabled: Enable/disable telemetry collection
            persistence_path: Directory receiving metrics.json
        """
        self.enabled = enabled
        if persistence_path:
            self.metrics_file = Path(persistence_path) / 'metrics.json'
            logger.info(f"Telemetry persistence enabled: {self.metrics_file}")

    @staticmethod
    def _make_key(name: str, tags: Dict[str, Any]) -> str:
        if not tags:
            return name
        tag_str = ','.join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}[{tag_str}]"

    # ========== Counters ==========

    def increment(self, name: str, amount: float = 1.0, **tags):
        if not self.enabled:
            return
        key = self._make_key(name, tags)
        with self._lock:
            self.counters[key] = self.counters.get(key, 0.0) + amount

    def get_counter(self, name: str, **tags) -> float:
        with self._lock:
            return self.counters.get(self._make_key(name, tags), 0.0)

    # ========== Timers ==========

    def record_timing(self, name: str, duration_seconds: float, **tags):
        if not self.enabled:
            return
        key = self._make_key(name, tags)
        with self._lock:
            stats = self.timers.setdefault(key, {'count': 0, 'total': 0.0, 'max': 0.0})
            stats['count'] += 1
            stats['total'] += duration_seconds
            stats['max'] = max(stats['max'], duration_seconds)

    def get_timer_stats(self, name: str, **tags) -> Dict[str, float]:
        with self._lock:
            stats = dict(self.timers.get(self._make_key(name, tags), {}))
        if stats.get('count'):
            stats['avg'] = stats['total'] / stats['count']
        return stats

    # ========== Events ==========

    def record_event(self, event_type: str, data: Dict[str, Any]):
        if not self.enabled:
            return
        with self._lock:
            self.events.append({
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'type': event_type,
                'data': data,
            })

    def record_error(self, error_type: str, error_message: str,
                     context: Optional[Dict[str, Any]] = None):
        if not self.enabled:
            return
        with self._lock:
            self.errors.append({
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'type': error_type,
                'message': error_message,
                'context': context or {},
            })
        self.increment('errors', error_type=error_type)

    def get_recent_events(self, limit: int = 100) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self.events)[-limit:]

    def get_recent_errors(self, limit: int = 50) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self.errors)[-limit:]

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'started_at': self.started_at.isoformat(),
                'counters': dict(self.counters),
                'timers': {k: dict(v) for k, v in self.timers.items()},
                'event_count': len(self.events),
                'error_count': len(self.errors),
            }

    def persist(self) -> bool:
        """Write the current summary to metrics.json"""
        if not self.enabled or self.metrics_file is None:
            return False
        try:
            atomic_write_json(self.metrics_file, self.get_summary())
            return True
        except OSError as e:
            logger.error(f"Failed to persist telemetry to {self.metrics_file}: {e}")
            return False

    def reset(self):
        with self._lock:
            self.counters.clear()
            self.timers.clear()
            self.events.clear()
            self.errors.clear()
