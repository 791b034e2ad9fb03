"""
Quota usage model for PharMatch.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from pharmatch.utils.constants import ActionKind

from .base import BaseDocument


class QuotaUsage(BaseDocument):
    """
    Counter of a rate-limited action for one actor and one period.

    A new period is a new document; past periods are kept for audit.
    ``limit`` is None for unlimited tiers.
    """

    actor_id: str
    action_kind: ActionKind
    period_start: datetime
    used: int = Field(0, ge=0)
    limit: Optional[int] = Field(default=None, ge=0)

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(0, self.limit - self.used)
