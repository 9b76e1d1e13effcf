"""
Module loader for Roll Enhancements.

Resolves module names to the Module subclass in the matching package under
``roll_enhancements.modules``, pulls in their dependencies, and returns them
in initialization order. Initialization order matters: a module's middleware
wraps the middleware of the modules it depends on.
"""

import importlib
import inspect
import logging
from graphlib import CycleError, TopologicalSorter
from typing import Dict, List, Optional, Sequence, Union

from ..modules.base import Module

logger = logging.getLogger(__name__)

DEFAULT_MODULES = ['dice', 'damage', 'autoroll']


class ModuleDependencyError(Exception):
    """A module or one of its dependencies cannot be loaded or ordered."""


class ModuleLoader:
    """
    Usage:
        for module in ModuleLoader().load_modules(['autoroll']):
            module.initialize(engine)   # dice, damage, autoroll
    """

    def load_modules(self, modules: Optional[Sequence[Union[str, Module]]] = None) -> List[Module]:
        """
        Load modules and their dependencies, dependencies first.

        Args:
            modules: Module names or Module instances (default: DEFAULT_MODULES)

        Raises:
            ModuleDependencyError: If a module cannot be imported, or
                dependencies are circular
        """
        loaded: Dict[str, Module] = {}
        pending = list(DEFAULT_MODULES if modules is None else modules)

        while pending:
            entry = pending.pop(0)
            module = entry if isinstance(entry, Module) else self._import_module(entry)
            if module.name in loaded:
                continue
            loaded[module.name] = module
            pending.extend(dep for dep in module.dependencies() if dep not in loaded)

        graph = {name: set(module.dependencies()) for name, module in loaded.items()}
        try:
            order = list(TopologicalSorter(graph).static_order())
        except CycleError as e:
            raise ModuleDependencyError(f"Circular module dependencies: {' -> '.join(e.args[1])}") from e

        for name in order:
            module = loaded[name]
            logger.info(f"Loaded module: {module.display_name} v{module.version}")
            if module.description:
                logger.debug(f"  {module.description}")
        return [loaded[name] for name in order]

    def _import_module(self, module_name: str) -> Module:
        """Instantiate the Module subclass defined in ``roll_enhancements.modules.<module_name>``."""
        try:
            package = importlib.import_module(f'..modules.{module_name}', __package__)
        except ImportError as e:
            raise ModuleDependencyError(f"Module '{module_name}' could not be imported: {e}") from e

        for _, cls in inspect.getmembers(package, inspect.isclass):
            if issubclass(cls, Module) and cls is not Module:
                return cls()

        raise ModuleDependencyError(f"Module '{module_name}' defines no Module subclass")
