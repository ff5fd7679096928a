from .adapter import TypeScriptAdapter
from .modules import TypeScriptModuleResolver, module_id_for

__all__ = ["TypeScriptAdapter", "TypeScriptModuleResolver", "module_id_for"]
