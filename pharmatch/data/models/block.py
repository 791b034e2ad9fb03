"""
Block list model for PharMatch.
"""

from .base import BaseDocument


class Block(BaseDocument):
    """
    One actor blocking another.

    A block is directional as stored but is enforced both ways: neither
    actor sees the other's targets and their active matches are closed.
    """

    blocker_id: str
    blocked_id: str
