import json
import logging
from typing import List

from acltree.logging.decision_logger import DecisionLogger


class DummyLogger:
    def __init__(self):
        self.records = []

    def log(self, level, msg):
        self.records.append((level, msg))


class _MemoryHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.messages: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(self.format(record))


def _setup_logger(name: str = "acltree.audit.test", level: int = logging.INFO):
    logger = logging.getLogger(name)
    logger.handlers[:] = []
    logger.propagate = False
    logger.setLevel(level)
    h = _MemoryHandler()
    h.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(h)
    return logger, h


def _payload(*, allowed=True, role="editor"):
    return {
        "query": {"role": role, "resource": "doc", "privilege": "read"},
        "decision": "allow" if allowed else "deny",
        "allowed": allowed,
        "reason": "matched" if allowed else "no_match",
        "matched": None,
        "trace_id": None,
    }


def test_json_output(monkeypatch):
    dl = DecisionLogger(sample_rate=1.0, level=logging.WARNING, as_json=True)
    dl.logger = DummyLogger()
    dl.log(_payload())
    level, msg = dl.logger.records[-1]
    assert level == logging.WARNING
    assert json.loads(msg)["query"]["role"] == "editor"


def test_text_output():
    dl = DecisionLogger()
    dl.logger = DummyLogger()
    dl.log(_payload(allowed=False))
    level, msg = dl.logger.records[-1]
    assert level == logging.INFO
    assert msg.startswith("decision {")
    assert "'deny'" in msg


def test_default_logger_name():
    assert DecisionLogger().logger.name == "acltree.audit"


def test_sample_rate_zero_drops_everything(monkeypatch):
    logger, h = _setup_logger()
    dl = DecisionLogger(logger_name=logger.name, sample_rate=0.0)
    monkeypatch.setattr("random.random", lambda: 0.0, raising=True)
    dl.log(_payload(allowed=False))
    assert h.messages == []


def test_partial_sample_rate_uses_random(monkeypatch):
    logger, h = _setup_logger()
    dl = DecisionLogger(logger_name=logger.name, sample_rate=0.5)
    monkeypatch.setattr("random.random", lambda: 0.7, raising=True)
    dl.log(_payload())
    assert h.messages == []
    monkeypatch.setattr("random.random", lambda: 0.2, raising=True)
    dl.log(_payload())
    assert len(h.messages) == 1


def test_smart_sampling_logs_every_deny():
    logger, h = _setup_logger()
    dl = DecisionLogger(logger_name=logger.name, as_json=True, sample_rate=0.0, smart_sampling=True)
    dl.log(_payload(allowed=False))
    dl.log(_payload(allowed=True))
    assert len(h.messages) == 1
    assert json.loads(h.messages[0])["decision"] == "deny"


def test_category_rates_override_global_rate(monkeypatch):
    logger, h = _setup_logger()
    dl = DecisionLogger(
        logger_name=logger.name,
        sample_rate=1.0,
        smart_sampling=True,
        category_sampling_rates={"deny": 1.0, "allow": 0.0},
    )
    monkeypatch.setattr("random.random", lambda: 0.0, raising=True)
    dl.log(_payload(allowed=True))
    assert h.messages == []


def test_rates_are_clamped():
    dl = DecisionLogger(sample_rate=7, category_sampling_rates={"deny": -1})
    assert dl.sample_rate == 1.0
    assert dl.category_sampling_rates == {"deny": 0.0}


def test_max_query_bytes_truncates():
    logger, h = _setup_logger()
    dl = DecisionLogger(logger_name=logger.name, as_json=True, max_query_bytes=50)
    dl.log(_payload(role="x" * 200))
    out = json.loads(h.messages[0])
    assert out["query"]["_truncated"] is True
    assert isinstance(out["query"]["size_bytes"], int)
    assert out["decision"] == "allow"


def test_max_query_bytes_keeps_small_query():
    logger, h = _setup_logger()
    dl = DecisionLogger(logger_name=logger.name, as_json=True, max_query_bytes=1000)
    dl.log(_payload())
    assert json.loads(h.messages[0])["query"]["resource"] == "doc"


def test_unserializable_query_is_logged_as_is():
    logger, h = _setup_logger()
    dl = DecisionLogger(logger_name=logger.name, as_json=False, max_query_bytes=10)
    payload = _payload()
    payload["query"]["role"] = {1, 2, 3}
    dl.log(payload)
    assert len(h.messages) == 1
    assert "_truncated" not in h.messages[0]
    assert "{1, 2, 3}" in h.messages[0]


def test_plugs_into_acl():
    from acltree import Acl

    logger, h = _setup_logger("acltree.audit.acl")
    acl = Acl(logger_sink=DecisionLogger(logger_name=logger.name, as_json=True))
    acl.add_role("r")
    acl.allow("r")
    acl.is_allowed("r", None, "read")
    out = json.loads(h.messages[0])
    assert out["allowed"] is True
    assert out["matched"] == {"resource": "*", "role": "r", "privilege": "*"}
