from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from pgregistry.core.modules.storage.models import PlaceholderImageReport, UploadAuthParameters
from pgregistry.web.deps import AppDep
from pgregistry.web.openapi import ErrorResponse

router = APIRouter(prefix="/imagekit", tags=["imagekit"])


class DeleteFileRequest(BaseModel):
    file_id: str = Field("", description="ImageKit file id")


class DeleteFileResult(BaseModel):
    success: bool


class ClearImagesRequest(BaseModel):
    ids: list[Any] = Field(default_factory=list, description="Resident ids; invalid ids are skipped")


class ClearImagesResult(BaseModel):
    modified_count: int


@router.get(
    "/auth",
    summary="Get upload signature",
    description="Signed parameters for uploading a file from the browser directly to ImageKit.",
    operation_id="getImageKitAuth",
    responses={501: {"model": ErrorResponse, "description": "ImageKit not configured"}},
)
async def get_auth(app: AppDep) -> UploadAuthParameters:
    return app.get_upload_auth()


@router.post(
    "/delete",
    summary="Delete ImageKit file",
    description="Delete a file from ImageKit. Placeholder and malformed file ids are skipped and reported as failure.",
    operation_id="deleteImageKitFile",
    responses={
        400: {"model": ErrorResponse, "description": "file_id missing"},
        501: {"model": ErrorResponse, "description": "ImageKit not configured"},
    },
)
async def delete_file(request: DeleteFileRequest, app: AppDep) -> DeleteFileResult:
    return DeleteFileResult(success=await app.delete_storage_file(request.file_id))


@router.get(
    "/invalid-images",
    summary="List placeholder profile images",
    description="Residents whose profile image is a browser-local placeholder (blob URL or local_ file id).",
    operation_id="listInvalidImages",
)
async def list_invalid_images(app: AppDep) -> PlaceholderImageReport:
    return await app.get_placeholder_images()


@router.post(
    "/invalid-images/clear",
    summary="Clear profile images",
    description="Remove the profile image of the given residents so it can be uploaded again.",
    operation_id="clearInvalidImages",
    responses={400: {"model": ErrorResponse, "description": "ids missing"}},
)
async def clear_invalid_images(request: ClearImagesRequest, app: AppDep) -> ClearImagesResult:
    return ClearImagesResult(modified_count=await app.clear_placeholder_images(request.ids))
