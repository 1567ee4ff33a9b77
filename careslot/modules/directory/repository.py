from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core.errors import ValidationError
from careslot.modules.directory.models import Doctor

class DoctorRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, doctor_id: int, *, for_update: bool = False) -> Doctor | None:
        q = select(Doctor).where(Doctor.id == doctor_id, Doctor.active.is_(True))
        if for_update:
            # serializes schedule writers for one doctor until commit
            q = q.with_for_update()
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def require(self, doctor_id: int, *, for_update: bool = False) -> Doctor:
        doctor = await self.get(doctor_id, for_update=for_update)
        if doctor is None:
            raise ValidationError(f"doctor {doctor_id} does not exist", field="doctorId")
        return doctor
