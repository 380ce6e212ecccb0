from fastapi import APIRouter
from pydantic import BaseModel

from pgregistry.core.modules.resident.models import ResidentView
from pgregistry.web.deps import AppDep

router = APIRouter(tags=["seed"])


class SeedResult(BaseModel):
    created: int
    residents: list[ResidentView]


@router.post(
    "/seed",
    summary="Insert sample residents",
    description="Create demonstration residents. Not idempotent: every call adds them again with new serials.",
    operation_id="seedStudents",
)
async def seed_students(app: AppDep) -> SeedResult:
    residents = await app.seed_residents()
    return SeedResult(created=len(residents), residents=residents)
