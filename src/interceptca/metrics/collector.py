"""In-process metrics collector.

Labelled counters for CA generation, restoration and best-effort
cleanup failures.  Exported in Prometheus text format so a failed
teardown can be inspected without making it fatal.
"""

from __future__ import annotations

import threading

_PREFIX = "interceptca_"


class MetricsCollector:
    """Thread-safe labelled counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}

    def increment(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        """Add *amount* to the counter *name* with *labels*."""
        key = (name, _freeze(labels))
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get(self, name: str, labels: dict | None = None) -> int:
        """Current value of a counter (0 if never incremented)."""
        with self._lock:
            return self._counters.get((name, _freeze(labels)), 0)

    def total(self, name: str) -> int:
        """Sum of *name* across every label combination."""
        with self._lock:
            return sum(v for (n, _), v in self._counters.items() if n == name)

    def export(self) -> str:
        """Render all counters in Prometheus text format."""
        with self._lock:
            items = sorted(self._counters.items())

        lines: list[str] = []
        current = None
        for (name, labels), value in items:
            metric = f"{_PREFIX}{name}"
            if name != current:
                if current is not None:
                    lines.append("")
                lines.append(f"# TYPE {metric} counter")
                current = name
            if labels:
                label_str = ",".join(f'{k}="{v}"' for k, v in labels)
                lines.append(f"{metric}{{{label_str}}} {value}")
            else:
                lines.append(f"{metric} {value}")
        return "\n".join(lines) + "\n" if lines else ""


def _freeze(labels: dict | None) -> tuple[tuple[str, str], ...]:
    if not labels:
        return ()
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))
