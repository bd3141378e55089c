from __future__ import annotations

from typing import Any, Dict, Optional

from acltree.core.ports import MetricsSink

try:
    from prometheus_client import Counter, Histogram  # type: ignore
except Exception:  # pragma: no cover
    Counter = Histogram = None  # type: ignore


class PrometheusMetrics(MetricsSink):
    """Prometheus-based MetricsSink.

    Exposes:
      - acltree_decisions_total{decision="allow|deny"}
      - acltree_decision_seconds{decision="allow|deny"} (Histogram)

    Pass ``registry`` to register somewhere other than the default registry.
    """

    _counter: Optional[Any]
    _hist: Optional[Any]

    def __init__(self, registry: Any = None) -> None:
        self._counter = None
        self._hist = None

        if Counter is None or Histogram is None:  # pragma: no cover
            return

        kwargs: Dict[str, Any] = {}
        if registry is not None:
            kwargs["registry"] = registry
        self._counter = Counter(
            "acltree_decisions_total",
            "Total access-control decisions by effect.",
            labelnames=("decision",),
            **kwargs,
        )
        self._hist = Histogram(
            "acltree_decision_seconds",
            "Access-control decision evaluation duration in seconds.",
            labelnames=("decision",),
            **kwargs,
        )

    # -- MetricsSink ------------------------------------------------------------

    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None:
        """Increment the decisions counter.

        *name* is accepted for the sink protocol; this sink always increments
        `acltree_decisions_total`.
        """
        if self._counter is None:
            return
        decision = (labels or {}).get("decision", "unknown")
        try:
            self._counter.labels(decision=decision).inc()  # type: ignore[call-arg]
        except Exception:  # pragma: no cover
            # never raise from metrics path
            pass

    def observe(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None:
        if self._hist is None:
            return
        decision = (labels or {}).get("decision", "unknown")
        try:
            self._hist.labels(decision=decision).observe(float(value))  # type: ignore[call-arg]
        except Exception:  # pragma: no cover
            pass
