from datetime import date
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from careslot.modules.exceptions.models import DateException

class ExceptionRepository:
    def __init__(self, s: AsyncSession): self.s = s

    async def get(self, doctor_id: int, day: date) -> DateException | None:
        res = await self.s.execute(select(DateException).where(DateException.doctor_id == doctor_id, DateException.date == day))
        return res.scalar_one_or_none()

    async def list(self, doctor_id: int, start: date | None = None, end: date | None = None) -> Sequence[DateException]:
        q = select(DateException).where(DateException.doctor_id == doctor_id)
        if start is not None:
            q = q.where(DateException.date >= start)
        if end is not None:
            q = q.where(DateException.date <= end)
        res = await self.s.execute(q.order_by(DateException.date.asc()))
        return res.scalars().all()

    async def upsert(self, doctor_id: int, day: date, **data) -> DateException:
        obj = await self.get(doctor_id, day)
        if obj is None:
            obj = DateException(doctor_id=doctor_id, date=day, **data)
            self.s.add(obj)
        else:
            for k, v in data.items():
                setattr(obj, k, v)
        await self.s.flush()
        return obj

    async def delete(self, doctor_id: int, day: date) -> bool:
        res = await self.s.execute(delete(DateException).where(DateException.doctor_id == doctor_id, DateException.date == day))
        return res.rowcount > 0
