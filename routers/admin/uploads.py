from fastapi import APIRouter, Depends

from routers.dependencies import get_admin_user

from .schemas import UploadImageRequest, UploadImageResponse
from .service import create_image_upload as service_create_image_upload

router = APIRouter(prefix="/api/admin")


@router.post("/upload-image", response_model=UploadImageResponse, response_model_by_alias=True)
def upload_image(payload: UploadImageRequest, admin=Depends(get_admin_user)):
    return service_create_image_upload(content_type=payload.content_type, filename=payload.filename)
