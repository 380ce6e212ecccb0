from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from pgregistry.core.modules.export.models import ResidentRow
from pgregistry.core.modules.resident.models import Address, Guardian, ProfileImage, ResidentDocument, ResidentView
from pgregistry.web.deps import AppDep
from pgregistry.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["students"])


class ResidentPayload(BaseModel):
    """Resident fields sent by the form.

    `id`, `serial` and `display_id` are assigned by the server; if present they are ignored.
    All fields are optional here, required ones (`name`, `room`) are checked when creating.
    """

    name: str | None = None
    phone: str | None = None
    room: str | None = None
    college: str | None = None
    section: str | None = None
    temp_address: Address | None = None
    perm_address: Address | None = None
    guardian: Guardian | None = None
    join_date: datetime | None = Field(None, description="Defaults to the creation time")
    fee_due: float | None = Field(None, description="Defaults to 0")
    notes: str | None = None
    fees_paid: bool | None = None
    profile_image: ProfileImage | None = None
    documents: list[ResidentDocument] | None = None

    model_config = {
        "extra": "ignore",
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Rahul Kumar",
                    "phone": "9876543210",
                    "room": "A1",
                    "college": "Delhi University",
                    "join_date": "2024-01-15T00:00:00Z",
                    "fee_due": 5000,
                    "guardian": {"name": "Rajesh Kumar", "phone": "8765432109", "relation": "Father"},
                }
            ]
        },
    }


class BulkDeleteRequest(BaseModel):
    ids: list[Any] = Field(default_factory=list, description="Resident ids; invalid or unknown ids are skipped")


class DeleteResult(BaseModel):
    deleted: bool


class BulkDeleteResult(BaseModel):
    deleted: int = Field(..., description="Number of residents actually removed", ge=0)


@router.get(
    "/students",
    summary="List residents",
    description="Get all residents, newest first. `q` filters by name, phone, room, notes or college.",
    operation_id="listStudents",
    responses={200: {"description": "List of residents with resolved display ids"}},
)
async def list_students(
    app: AppDep, q: Annotated[str | None, Query(description="Case-insensitive search term")] = None
) -> list[ResidentView]:
    return await app.get_residents(q)


@router.get(
    "/students/rows",
    summary="List resident table rows",
    description="Residents formatted for the list view, same columns and formatting as the spreadsheet export.",
    operation_id="listStudentRows",
    responses={200: {"description": "Formatted rows"}},
)
async def list_student_rows(
    app: AppDep, q: Annotated[str | None, Query(description="Case-insensitive search term")] = None
) -> list[ResidentRow]:
    return await app.get_resident_rows(q)


@router.get(
    "/students/{student_id}",
    summary="Get resident",
    operation_id="getStudent",
    responses={
        200: {"description": "Resident details"},
        404: {"model": ErrorResponse, "description": "Resident not found"},
    },
)
async def get_student(student_id: str, app: AppDep) -> ResidentView:
    return await app.get_resident(student_id)


@router.post(
    "/students",
    summary="Create resident",
    description="Create a resident. The next serial number is assigned and determines the display id.",
    operation_id="createStudent",
    status_code=201,
    responses={
        201: {"description": "Resident created"},
        400: {"model": ErrorResponse, "description": "Missing required fields or invalid data"},
        503: {"model": ErrorResponse, "description": "Serial number could not be assigned"},
    },
)
async def create_student(request: ResidentPayload, app: AppDep) -> ResidentView:
    return await app.create_resident(request.model_dump(exclude_unset=True))


@router.put(
    "/students/{student_id}",
    summary="Update resident",
    description="Replace the provided fields. Serial number and id never change.",
    operation_id="updateStudent",
    responses={
        200: {"description": "Resident updated"},
        400: {"model": ErrorResponse, "description": "Invalid data"},
        404: {"model": ErrorResponse, "description": "Resident not found"},
    },
)
async def update_student(student_id: str, request: ResidentPayload, app: AppDep) -> ResidentView:
    return await app.update_resident(student_id, request.model_dump(exclude_unset=True))


@router.delete(
    "/students/{student_id}",
    summary="Delete resident",
    description="Delete a resident. Its profile image and documents are removed from ImageKit in the background.",
    operation_id="deleteStudent",
    responses={
        200: {"description": "Resident deleted"},
        404: {"model": ErrorResponse, "description": "Resident not found"},
    },
)
async def delete_student(student_id: str, app: AppDep) -> DeleteResult:
    await app.delete_resident(student_id)
    return DeleteResult(deleted=True)


@router.post(
    "/students/bulk-delete",
    summary="Delete several residents",
    operation_id="bulkDeleteStudents",
    responses={
        200: {"description": "Number of residents removed"},
        400: {"model": ErrorResponse, "description": "No ids provided"},
    },
)
async def bulk_delete_students(request: BulkDeleteRequest, app: AppDep) -> BulkDeleteResult:
    return BulkDeleteResult(deleted=await app.bulk_delete_residents(request.ids))
