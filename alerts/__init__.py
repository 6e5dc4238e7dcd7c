"""
Alert delivery for correlation findings.

Exposes the synchronous event hub that engine consumers subscribe to.
"""

from .event_hub import EventHub

__all__ = [
    "EventHub",
]
