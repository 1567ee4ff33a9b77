import uuid
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from careslot.modules.availability.models import WeeklyAvailabilityRule

class AvailabilityRepository:
    def __init__(self, s: AsyncSession): self.s = s

    async def create_rule(self, **data) -> WeeklyAvailabilityRule:
        obj = WeeklyAvailabilityRule(**data); self.s.add(obj); await self.s.flush(); return obj

    async def get_rule(self, rule_id: uuid.UUID) -> WeeklyAvailabilityRule | None:
        res = await self.s.execute(select(WeeklyAvailabilityRule).where(WeeklyAvailabilityRule.id == rule_id))
        return res.scalar_one_or_none()

    async def list_rules(self, doctor_id: int, *, include_inactive: bool = False) -> Sequence[WeeklyAvailabilityRule]:
        q = select(WeeklyAvailabilityRule).where(WeeklyAvailabilityRule.doctor_id == doctor_id)
        if not include_inactive:
            q = q.where(WeeklyAvailabilityRule.active.is_(True))
        q = q.order_by(WeeklyAvailabilityRule.day_of_week.asc(), WeeklyAvailabilityRule.start_minute.asc())
        res = await self.s.execute(q)
        return res.scalars().all()

    async def rules_for_day(self, doctor_id: int, day_of_week: int) -> Sequence[WeeklyAvailabilityRule]:
        res = await self.s.execute(select(WeeklyAvailabilityRule).where(
            WeeklyAvailabilityRule.doctor_id == doctor_id,
            WeeklyAvailabilityRule.day_of_week == day_of_week,
            WeeklyAvailabilityRule.active.is_(True),
        ).order_by(WeeklyAvailabilityRule.start_minute.asc()))
        return res.scalars().all()

    async def overlapping(self, doctor_id: int, day_of_week: int, start_minute: int, end_minute: int, *, exclude_id: uuid.UUID | None = None) -> Sequence[WeeklyAvailabilityRule]:
        q = select(WeeklyAvailabilityRule).where(
            WeeklyAvailabilityRule.doctor_id == doctor_id,
            WeeklyAvailabilityRule.day_of_week == day_of_week,
            WeeklyAvailabilityRule.active.is_(True),
            WeeklyAvailabilityRule.start_minute < end_minute,
            WeeklyAvailabilityRule.end_minute > start_minute,
        )
        if exclude_id is not None:
            q = q.where(WeeklyAvailabilityRule.id != exclude_id)
        res = await self.s.execute(q)
        return res.scalars().all()
