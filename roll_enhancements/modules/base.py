"""
Base classes for roll modules.

A roll module is a package under ``roll_enhancements.modules`` holding one
Module subclass. When the engine loads it, the module declares the events it
publishes and then hooks middleware into the item roll pipelines.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from roll_enhancements.core.engine import RollEngine


@dataclass(frozen=True)
class EventTypeDefinition:
    """
    An event type a module publishes.

    Attributes:
        type: Event type name (e.g., 'roll.completed')
        description: What the event records
        module: Name of the module publishing it
        data_schema: JSON Schema that ``event.data`` must satisfy
    """
    type: str
    description: str
    module: str
    data_schema: Dict[str, Any] = field(default_factory=dict)


class Module(ABC):
    """
    A loadable piece of roll behaviour.

    Subclasses provide ``name`` and ``version``; ``dependencies`` names the
    modules that must be initialized first (their middleware sits closer to
    the primitive), and ``initialize`` installs this module's hooks.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Package name under roll_enhancements.modules."""

    @property
    @abstractmethod
    def version(self) -> str:
        pass

    @property
    def display_name(self) -> str:
        return self.name.title()

    @property
    def description(self) -> str:
        return ''

    def dependencies(self) -> List[str]:
        return []

    def register_event_types(self) -> List[EventTypeDefinition]:
        return []

    def initialize(self, engine: 'RollEngine') -> None:
        """Hook into ``engine`` (e.g., ``engine.items.roll_damage.use(...)``)."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} v{self.version}>"
