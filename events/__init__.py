"""
Event tracking system for the scoreboard clients
"""

from .event_bus import event_bus, EventTypes, SystemEvent, EventBus

__all__ = ['event_bus', 'EventTypes', 'SystemEvent', 'EventBus']
