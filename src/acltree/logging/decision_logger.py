from __future__ import annotations

import json
import logging
import random
from typing import Any, Dict, Optional

from ..core.ports import DecisionLogSink

_DEFAULT_CATEGORY_RATES: Dict[str, float] = {"deny": 1.0}


class DecisionLogger(DecisionLogSink):
    """Audit sink writing one record per decision to a stdlib logger.

    Sampling:
      - ``sample_rate`` applies to every decision by default.
      - With ``smart_sampling=True`` the rate is looked up per category
        (``"deny"`` / ``"allow"``) in ``category_sampling_rates`` and falls
        back to ``sample_rate``. By default every deny is logged.

    ``max_query_bytes`` replaces an oversized ``query`` section with a
    ``{"_truncated": True, "size_bytes": n}`` placeholder.
    """

    def __init__(
        self,
        *,
        logger_name: str = "acltree.audit",
        level: int = logging.INFO,
        as_json: bool = False,
        sample_rate: float = 1.0,
        smart_sampling: bool = False,
        category_sampling_rates: Optional[Dict[str, float]] = None,
        max_query_bytes: Optional[int] = None,
    ) -> None:
        self.logger = logging.getLogger(logger_name)
        self.level = level
        self.as_json = as_json
        self.sample_rate = _clamp(sample_rate)
        self.smart_sampling = bool(smart_sampling)
        rates = category_sampling_rates if category_sampling_rates is not None else _DEFAULT_CATEGORY_RATES
        self.category_sampling_rates = {k: _clamp(v) for k, v in rates.items()}
        self.max_query_bytes = max_query_bytes

    def _rate_for(self, payload: Dict[str, Any]) -> float:
        if not self.smart_sampling:
            return self.sample_rate
        category = "allow" if payload.get("allowed") else "deny"
        return self.category_sampling_rates.get(category, self.sample_rate)

    def _should_log(self, payload: Dict[str, Any]) -> bool:
        rate = self._rate_for(payload)
        if rate <= 0.0:
            return False
        if rate >= 1.0:
            return True
        return random.random() < rate

    def _bounded(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.max_query_bytes is None or "query" not in payload:
            return payload
        try:
            size = len(json.dumps(payload["query"], ensure_ascii=False).encode("utf-8"))
        except (TypeError, ValueError):
            # Unserializable query: log it as is.
            return payload
        if size <= self.max_query_bytes:
            return payload
        bounded = dict(payload)
        bounded["query"] = {"_truncated": True, "size_bytes": size}
        return bounded

    def log(self, payload: Dict[str, Any]) -> None:
        if not self._should_log(payload):
            return
        safe = self._bounded(payload)
        if self.as_json:
            msg = json.dumps(safe, ensure_ascii=False, default=str)
        else:
            msg = f"decision {safe}"
        self.logger.log(self.level, msg)


def _clamp(rate: float) -> float:
    return max(0.0, min(1.0, float(rate)))


__all__ = ["DecisionLogger"]
