"""
Monthly AI credit accounting.

One ``ai_credits`` row per user per calendar month. Consumption is a
single conditional UPDATE so concurrent requests from the same user can
never push ``credits_used`` past the ceiling.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.dates import ensure_utc, first_day_of_next_month, utcnow
from infrastructure.database.models import AICredits

logger = logging.getLogger(__name__)

INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"


@dataclass
class CreditBalance:
    used: int
    max: Optional[int]  # None means unlimited
    reset_at: datetime

    @property
    def remaining(self) -> Optional[int]:
        if self.max is None:
            return None
        return max(0, self.max - self.used)


class InsufficientCreditsError(Exception):
    """Raised when the monthly ceiling has been reached."""

    def __init__(self, balance: CreditBalance):
        self.balance = balance
        super().__init__(
            f"Monthly AI credit limit reached ({balance.used}/{balance.max})"
        )


class AICreditService:
    """Reads and consumes a user's monthly AI credits."""

    def __init__(self, db: AsyncSession, now: Optional[datetime] = None):
        self.db = db
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or utcnow()

    async def _get_row(self, user_id: str) -> Optional[AICredits]:
        now = self.now
        result = await self.db.execute(
            select(AICredits)
            .where(
                AICredits.user_id == user_id,
                AICredits.month == now.month,
                AICredits.year == now.year,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _ensure_row(self, user_id: str) -> None:
        """Create this month's row if it does not exist yet."""
        if await self._get_row(user_id) is not None:
            return
        now = self.now
        self.db.add(
            AICredits(
                user_id=user_id,
                credits_used=0,
                month=now.month,
                year=now.year,
                reset_at=first_day_of_next_month(now),
            )
        )
        try:
            await self.db.commit()
        except IntegrityError:
            # Another request created the row first
            await self.db.rollback()

    async def get_balance(self, user_id: str, limit: Optional[int]) -> CreditBalance:
        """Current month's usage without consuming anything."""
        row = await self._get_row(user_id)
        if row is None:
            return CreditBalance(used=0, max=limit, reset_at=first_day_of_next_month(self.now))
        return CreditBalance(used=row.credits_used, max=limit, reset_at=ensure_utc(row.reset_at))

    async def consume(self, user_id: str, limit: Optional[int]) -> CreditBalance:
        """
        Atomically spend one credit.

        Args:
            user_id: Owner of the counter
            limit: Monthly ceiling, or None for unlimited

        Returns:
            Balance after the increment

        Raises:
            InsufficientCreditsError: The ceiling was already reached; nothing changed
        """
        await self._ensure_row(user_id)
        now = self.now

        stmt = (
            update(AICredits)
            .where(
                AICredits.user_id == user_id,
                AICredits.month == now.month,
                AICredits.year == now.year,
            )
            .values(credits_used=AICredits.credits_used + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if limit is not None:
            stmt = stmt.where(AICredits.credits_used < limit)

        result = await self.db.execute(stmt)
        await self.db.commit()

        balance = await self.get_balance(user_id, limit)
        if result.rowcount == 0:
            logger.info(
                "AI credit limit reached for user %s (%s/%s)", user_id, balance.used, limit
            )
            raise InsufficientCreditsError(balance)
        return balance
