from datetime import date

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_admin_user

from .schemas import (
    ContentImportRequest,
    ContentImportResponse,
    ContentItem,
    ContentListResponse,
    ContentResponse,
)
from .service import (
    NO_CACHE_HEADERS,
    export_content as service_export_content,
    import_content as service_import_content,
    list_content as service_list_content,
    save_content as service_save_content,
)

router = APIRouter(prefix="/api/content", tags=["Content"])


@router.get("", response_model=ContentListResponse)
def get_content(response: Response, db: Session = Depends(get_db)):
    response.headers.update(NO_CACHE_HEADERS)
    return service_list_content(db)


@router.post("", response_model=ContentResponse)
def save_content(
    payload: ContentItem,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_save_content(db, item=payload, updated_by=admin.id)


@router.get("/export")
def export_content(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    filename = f"content-export-{date.today().isoformat()}.json"
    return JSONResponse(
        content=service_export_content(db, exported_by=admin.id),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ContentImportResponse)
def import_content(
    payload: ContentImportRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_import_content(
        db, items=payload.content, overwrite=payload.overwrite, imported_by=admin.id
    )
