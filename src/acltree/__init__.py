from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from . import core
from .core.engine import Acl
from .core.errors import AclError, UnknownResourceError, UnknownRoleError
from .core.model import ANY, Decision, Rule, Wildcard
from .core.ports import Assertion, ResourceLike, RoleLike
from .logging.decision_logger import DecisionLogger


def _detect_version() -> str:
    if version is None:
        return "0.1.0"
    try:
        return version("acltree")
    except PackageNotFoundError:
        return "0.1.0"


__version__ = _detect_version()

__all__ = [
    "ANY",
    "Acl",
    "AclError",
    "Assertion",
    "Decision",
    "DecisionLogger",
    "ResourceLike",
    "RoleLike",
    "Rule",
    "UnknownResourceError",
    "UnknownRoleError",
    "Wildcard",
    "core",
    "__version__",
]
