import logging

from acltree import Acl
from acltree.logging.context import clear_current_trace_id, set_current_trace_id


class RecordingSink:
    def __init__(self):
        self.payloads = []

    def log(self, payload):
        self.payloads.append(payload)


class MetricsWithObserve:
    def __init__(self):
        self.calls = []

    def inc(self, *a, **k):
        self.calls.append(("inc", a, k))

    def observe(self, *a, **k):
        self.calls.append(("observe", a, k))


class MetricsNoObserve:
    def __init__(self):
        self.calls = []

    def inc(self, name, labels):
        self.calls.append((name, labels))


class BoomSink:
    def log(self, payload):
        raise RuntimeError("logger boom")


class BoomMetrics:
    def inc(self, *a, **k):
        raise RuntimeError("inc boom")

    def observe(self, *a, **k):
        raise RuntimeError("obs boom")


def _acl(**kw):
    acl = Acl(**kw).add_role("r").add_resource("doc")
    acl.allow("r", "doc", "read")
    return acl


def test_metrics_inc_and_observe_called():
    m = MetricsWithObserve()
    acl = _acl(metrics=m)
    assert acl.is_allowed("r", "doc", "read") is True
    assert acl.is_allowed("r", "doc", "write") is False
    incs = [c for c in m.calls if c[0] == "inc"]
    observes = [c for c in m.calls if c[0] == "observe"]
    assert [c[1] for c in incs] == [
        ("acltree_decisions_total", {"decision": "allow"}),
        ("acltree_decisions_total", {"decision": "deny"}),
    ]
    assert len(observes) == 2
    name, seconds, labels = observes[0][1]
    assert name == "acltree_decision_seconds"
    assert seconds >= 0.0
    assert labels == {"decision": "allow"}


def test_metrics_without_observe():
    m = MetricsNoObserve()
    assert _acl(metrics=m).is_allowed("r", "doc", "read") is True
    assert m.calls == [("acltree_decisions_total", {"decision": "allow"})]


def test_sink_failures_never_break_decisions(caplog):
    acl = _acl(logger_sink=BoomSink(), metrics=BoomMetrics())
    with caplog.at_level(logging.ERROR, logger="acltree.core.engine"):
        assert acl.is_allowed("r", "doc", "read") is True
        assert acl.is_allowed("r", "doc", "write") is False
    messages = [r.getMessage() for r in caplog.records]
    assert any("decision logger failed" in m for m in messages)
    assert any("metrics sink failed" in m for m in messages)


def test_decision_payload_shape():
    sink = RecordingSink()
    acl = _acl(logger_sink=sink)
    token = set_current_trace_id("trace-42")
    try:
        acl.is_allowed("r", "doc", "read")
    finally:
        clear_current_trace_id(token)
    acl.is_allowed(["ghost", "r"], "missing")

    first, second = sink.payloads
    assert first == {
        "query": {"role": "r", "resource": "doc", "privilege": "read"},
        "decision": "allow",
        "allowed": True,
        "reason": "matched",
        "matched": {"resource": "doc", "role": "r", "privilege": "read"},
        "trace_id": "trace-42",
    }
    assert second["query"]["role"] == ["ghost", "r"]
    assert second["reason"] == "unknown_resource"
    assert second["matched"] is None
    assert second["trace_id"] is None


def test_payload_renders_wildcards_and_objects_as_ids():
    class Member:
        def get_role_id(self):
            return "r"

    sink = RecordingSink()
    acl = Acl(logger_sink=sink).add_role("r")
    acl.allow()
    acl.is_allowed(Member())
    payload = sink.payloads[0]
    assert payload["query"]["role"] == "r"
    assert payload["matched"] == {"resource": "*", "role": "*", "privilege": "*"}


def test_assertion_error_emits_nothing():
    sink = RecordingSink()
    acl = Acl(logger_sink=sink).add_role("r")

    def boom(*_):
        raise ValueError("x")

    acl.allow("r", assertion=boom)
    try:
        acl.is_allowed("r")
    except ValueError:
        pass
    assert sink.payloads == []


def test_role_objects_are_resolved_once_per_logged_decision():
    class Member:
        calls = 0

        def get_role_id(self):
            Member.calls += 1
            return "r"

    sink = RecordingSink()
    acl = _acl(logger_sink=sink)
    acl.is_allowed(Member(), "doc", "read")
    assert Member.calls == 1
    assert sink.payloads[0]["query"]["role"] == "r"
