from typing import Literal

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, HTMLResponse
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import get_admin_user

from .schemas import SiteMetadataRequest, SiteMetadataResponse, WhitepaperUploadResponse
from .service import (
    get_metadata as service_get_metadata,
    get_whitepaper_file as service_get_whitepaper_file,
    render_og_page as service_render_og_page,
    save_metadata as service_save_metadata,
    save_whitepaper as service_save_whitepaper,
)

router = APIRouter(tags=["Content"])


@router.get("/api/metadata", response_model=SiteMetadataResponse)
def get_public_metadata(db: Session = Depends(get_db)):
    return service_get_metadata(db)


@router.get("/api/admin/metadata", response_model=SiteMetadataResponse, tags=["Admin"])
def get_metadata(db: Session = Depends(get_db), admin=Depends(get_admin_user)):
    return service_get_metadata(db)


@router.post("/api/admin/metadata", response_model=SiteMetadataResponse, tags=["Admin"])
def save_metadata(
    payload: SiteMetadataRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return service_save_metadata(db, data=payload, updated_by=admin.id)


@router.get("/og", response_class=HTMLResponse)
def og_page(db: Session = Depends(get_db)):
    """Static HTML with Open Graph tags for link-preview crawlers."""
    return HTMLResponse(service_render_og_page(db))


@router.post("/api/admin/whitepaper/upload", response_model=WhitepaperUploadResponse, tags=["Admin"])
def upload_whitepaper(
    file: UploadFile = File(...),
    type: Literal["tsu", "tsu-x"] = Form("tsu"),
    admin=Depends(get_admin_user),
):
    return service_save_whitepaper(upload=file, paper_type=type, uploaded_by=admin.id)


@router.get("/api/whitepaper/{paper_type}")
def download_whitepaper(paper_type: str):
    path = service_get_whitepaper_file(paper_type)
    return FileResponse(path, media_type="application/pdf", filename=path.rsplit("/", 1)[-1])
