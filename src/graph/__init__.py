"""Module registry and requirement graph."""

from .models import ModuleInfo, ModuleVersion, RequirementEdge
from .modules import Modules
from .modgraph import ModGraph

__all__ = [
    "ModuleInfo",
    "ModuleVersion",
    "RequirementEdge",
    "Modules",
    "ModGraph",
]
