from .environments import Environment
from .tables import EventTables

__all__ = ["Environment", "EventTables"]
