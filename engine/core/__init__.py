"""
Core engine module.

Exports:
- DataConfig, configure_logging: Engine configuration
- EventBus, Event, DataEvent: Event system
"""

from engine.core.config import DataConfig, DEFAULT_CONFIG, configure_logging
from engine.core.events import EventBus, Event, DataEvent

__all__ = [
    # Config
    "DataConfig",
    "DEFAULT_CONFIG",
    "configure_logging",
    # Events
    "EventBus",
    "Event",
    "DataEvent",
]
