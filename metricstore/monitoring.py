"""Self-monitoring gauges for the metric store."""

from __future__ import annotations

import threading
from typing import Callable, TypeVar

_T = TypeVar("_T")


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class GaugeVec:
    """A gauge with one label dimension, safe to use from several threads."""

    def __init__(
        self,
        namespace: str,
        subsystem: str,
        name: str,
        help_text: str,
        label_name: str,
        stability: str = "ALPHA",
    ) -> None:
        self.fqname = "_".join(part for part in (namespace, subsystem, name) if part)
        self.help_text = help_text
        self.label_name = label_name
        self.stability = stability
        self._values: dict[str, float] = {}
        self._lock = threading.Lock()

    def set(self, label: str, value: float) -> None:
        """Set the gauge for one label value."""
        with self._lock:
            self._values[label] = float(value)

    def get(self, label: str) -> float:
        """Return the gauge for one label value; KeyError if it was never set."""
        with self._lock:
            return self._values[label]

    def reset(self) -> None:
        """Forget every label value."""
        with self._lock:
            self._values.clear()

    def collect(self) -> str:
        """Render the gauge in the text exposition format, labels sorted."""
        with self._lock:
            samples = sorted(self._values.items())
        if not samples:
            return ""
        lines = [
            f"# HELP {self.fqname} [{self.stability}] {self.help_text}",
            f"# TYPE {self.fqname} gauge",
        ]
        lines.extend(
            f'{self.fqname}{{{self.label_name}="{_escape_label(label)}"}} '
            f"{_format_value(value)}"
            for label, value in samples
        )
        return "\n".join(lines) + "\n"


POINTS_STORED = GaugeVec(
    namespace="metrics_server",
    subsystem="storage",
    name="points",
    help_text="Number of metrics points stored.",
    label_name="type",
)


def register_storage_metrics(registration_func: Callable[[GaugeVec], _T]) -> _T:
    """Hand the stored-points gauge to a registry; errors propagate."""
    return registration_func(POINTS_STORED)