import importlib


def test_public_api_imports():
    names = [
        "Acl",
        "ANY",
        "Wildcard",
        "Decision",
        "Rule",
        "AclError",
        "UnknownRoleError",
        "UnknownResourceError",
        "RoleLike",
        "ResourceLike",
        "Assertion",
        "DecisionLogger",
        "core",
        "__version__",
    ]
    mod = importlib.import_module("acltree")
    for n in names:
        assert hasattr(mod, n), f"Missing public import: acltree.{n}"


def test_core_reexports():
    core = importlib.import_module("acltree.core")
    for n in ("Acl", "RoleRegistry", "ResourceTree", "RuleStore", "Query"):
        assert hasattr(core, n)


def test_role_and_resource_protocols_are_runtime_checkable():
    from acltree import ResourceLike, RoleLike

    class Both:
        def get_role_id(self):
            return "r"

        def get_resource_id(self):
            return "x"

    assert isinstance(Both(), RoleLike)
    assert isinstance(Both(), ResourceLike)
    assert not isinstance("r", RoleLike)
