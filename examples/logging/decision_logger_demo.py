#!/usr/bin/env python3
"""
DecisionLogger configuration demo.

Run:
  python examples/logging/decision_logger_demo.py

This script shows:
  1) Every decision as a JSON line
  2) Smart sampling (denies only)
  3) Query size limit

Records go through the 'acltree.audit' logger, prefixed with the trace id.
"""

import logging

from acltree import Acl
from acltree.logging.context import TraceIdFilter, gen_trace_id, set_current_trace_id
from acltree.logging.decision_logger import DecisionLogger


def setup_logging() -> None:
    """Configure logging so 'acltree.audit' emits to stdout."""
    root = logging.getLogger()
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(trace_id)s %(message)s"))
        h.addFilter(TraceIdFilter())
        root.addHandler(h)
    root.setLevel(logging.INFO)


def make_acl(sink: DecisionLogger) -> Acl:
    acl = Acl(logger_sink=sink)
    acl.add_role("reader").add_role("writer", "reader")
    acl.add_resource("docs")
    acl.allow("reader", "docs", "read")
    acl.allow("writer", "docs", "write")
    return acl


def run(acl: Acl) -> None:
    """Fire an allow and a deny."""
    acl.is_allowed("writer", "docs", "read")
    acl.is_allowed("reader", "docs", "write")


def main() -> None:
    setup_logging()
    set_current_trace_id(gen_trace_id())

    print("\n=== 1) Every decision ===")
    run(make_acl(DecisionLogger(as_json=True)))

    print("\n=== 2) Smart sampling (denies only) ===")
    run(make_acl(DecisionLogger(as_json=True, smart_sampling=True, sample_rate=0.0)))

    print("\n=== 3) Query size limit ===")
    acl = make_acl(DecisionLogger(as_json=True, max_query_bytes=40))
    acl.is_allowed(["reader"] * 20, "docs", "read")  # expect {"_truncated": true, ...}

    print("\nDone. Check log lines above (logger name: 'acltree.audit').")


if __name__ == "__main__":
    main()
