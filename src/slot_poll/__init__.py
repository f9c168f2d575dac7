"""Slot Poll - find a common time slot.

This package implements the availability-learning core of a scheduling poll:
organizers publish a grid of candidate dates x times, participants vote per
cell, and each participant's "usual availability" is learned from their votes
and replayed to pre-fill future polls.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from slot_poll.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
