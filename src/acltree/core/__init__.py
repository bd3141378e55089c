from .engine import Acl
from .errors import AclError, UnknownResourceError, UnknownRoleError
from .model import ANY, Decision, Query, Rule, Wildcard
from .ports import Assertion, ResourceLike, RoleLike
from .resources import ResourceTree
from .roles import RoleRegistry
from .rules import RuleStore

__all__ = [
    "ANY",
    "Acl",
    "AclError",
    "Assertion",
    "Decision",
    "Query",
    "ResourceLike",
    "ResourceTree",
    "RoleLike",
    "RoleRegistry",
    "Rule",
    "RuleStore",
    "UnknownResourceError",
    "UnknownRoleError",
    "Wildcard",
]
