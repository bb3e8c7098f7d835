"""Role state persistence for juliet."""

from .backend import LocalRoleFileSystem, MemoryRoleFileSystem, RoleFileSystem
from .layout import RoleListing, ScaffoldPlan, is_scaffolded, plan_scaffold
from .store import ConfiguredRole, InitResult, RoleStateStore

__all__ = [
    "ConfiguredRole",
    "InitResult",
    "LocalRoleFileSystem",
    "MemoryRoleFileSystem",
    "RoleFileSystem",
    "RoleListing",
    "RoleStateStore",
    "ScaffoldPlan",
    "is_scaffolded",
    "plan_scaffold",
]
