"""Content service layer."""

import html
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, List

from fastapi import HTTPException, UploadFile, status
from pydantic import ValidationError

import config

from . import repository as content_repository
from .schemas import ContentItem, SiteMetadataRequest

logger = logging.getLogger(__name__)

WHITEPAPER_FILES = {"tsu": "tsu-whitepaper.pdf", "tsu-x": "tsu-x-whitepaper.pdf"}
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
}


def list_content(db):
    return {
        "data": content_repository.list_content(db),
        "timestamp": datetime.utcnow(),
        "version": int(time.time() * 1000),
    }


def save_content(db, *, item: ContentItem, updated_by: str):
    row = content_repository.upsert_content(
        db,
        key=item.key,
        value=item.value,
        title=item.title,
        section=item.section,
        is_active=item.is_active,
        updated_by=updated_by,
    )
    db.commit()
    db.refresh(row)
    logger.info(f"CONTENT_SAVED | key={item.key} | by={updated_by}")
    return row


def export_content(db, *, exported_by: str) -> Dict[str, Any]:
    rows = content_repository.list_content(db, active_only=False)
    return {
        "version": "1.0",
        "exportedAt": datetime.utcnow().isoformat() + "Z",
        "exportedBy": exported_by,
        "environment": config.ENVIRONMENT,
        "contentCount": len(rows),
        "content": [
            {
                "key": row.key,
                "value": row.value,
                "title": row.title,
                "section": row.section,
                "isActive": row.is_active,
                "updatedBy": row.updated_by,
                "updatedAt": row.updated_at.isoformat() if row.updated_at else None,
            }
            for row in rows
        ],
    }


def import_content(db, *, items: List[Dict[str, Any]], overwrite: bool, imported_by: str):
    imported = 0
    skipped = 0
    errors: List[str] = []

    for raw in items:
        key = raw.get("key") if isinstance(raw, dict) else None
        try:
            item = ContentItem.model_validate(raw)
        except ValidationError as e:
            reasons = ", ".join(err["msg"] for err in e.errors())
            errors.append(f"Invalid data for key '{key}': {reasons}")
            continue

        if content_repository.get_content(db, key=item.key) and not overwrite:
            skipped += 1
            continue

        content_repository.upsert_content(
            db,
            key=item.key,
            value=item.value,
            title=item.title,
            section=item.section,
            is_active=item.is_active,
            updated_by=imported_by,
        )
        db.flush()
        imported += 1

    db.commit()
    logger.info(
        f"CONTENT_IMPORTED | by={imported_by} | total={len(items)} | imported={imported} | skipped={skipped} | errors={len(errors)}"
    )
    return {
        "message": "Content import completed",
        "stats": {"total": len(items), "imported": imported, "skipped": skipped, "errors": len(errors)},
        "errors": errors or None,
    }


# ---------------------------------------------------------------------------
# Site metadata
# ---------------------------------------------------------------------------

def default_metadata() -> Dict[str, Any]:
    return {
        "title": config.SITE_TITLE,
        "description": config.SITE_DESCRIPTION,
        "keywords": "TSU, Trade Settlement Unit, digital currency, BRICS, Africa",
        "og_image": config.OG_IMAGE_URL,
        "twitter_card": "summary_large_image",
        "site_name": "TSU Wallet",
    }


def get_metadata(db):
    return content_repository.get_site_metadata(db) or default_metadata()


def save_metadata(db, *, data: SiteMetadataRequest, updated_by: str):
    row = content_repository.save_site_metadata(db, updated_by=updated_by, **data.model_dump())
    db.commit()
    db.refresh(row)
    logger.info(f"SITE_METADATA_SAVED | by={updated_by}")
    return row


def render_og_page(db) -> str:
    meta = get_metadata(db)
    if not isinstance(meta, dict):
        meta = {
            "title": meta.title,
            "description": meta.description,
            "keywords": meta.keywords,
            "og_image": meta.og_image,
            "twitter_card": meta.twitter_card,
            "site_name": meta.site_name,
        }
    e = {name: html.escape(value or "", quote=True) for name, value in meta.items()}
    url = html.escape(config.SITE_URL, quote=True)
    image_tags = ""
    if e["og_image"]:
        image_tags = (
            f'<meta property="og:image" content="{e["og_image"]}" />\n'
            f'<meta name="twitter:image" content="{e["og_image"]}" />\n'
        )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8" />
<title>{e['title']}</title>
<meta name="description" content="{e['description']}" />
<meta name="keywords" content="{e['keywords']}" />
<meta property="og:type" content="website" />
<meta property="og:url" content="{url}" />
<meta property="og:title" content="{e['title']}" />
<meta property="og:description" content="{e['description']}" />
<meta property="og:site_name" content="{e['site_name']}" />
<meta name="twitter:card" content="{e['twitter_card']}" />
<meta name="twitter:title" content="{e['title']}" />
<meta name="twitter:description" content="{e['description']}" />
{image_tags}<meta http-equiv="refresh" content="0; url={url}" />
</head>
<body><a href="{url}">{e['title']}</a></body>
</html>
"""


# ---------------------------------------------------------------------------
# Whitepapers
# ---------------------------------------------------------------------------

def whitepaper_path(paper_type: str) -> str:
    filename = WHITEPAPER_FILES.get(paper_type)
    if not filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Whitepaper type must be 'tsu' or 'tsu-x'")
    return os.path.join(config.WHITEPAPER_DIR, filename)


def save_whitepaper(*, upload: UploadFile, paper_type: str, uploaded_by: str):
    path = whitepaper_path(paper_type)
    if upload.content_type != "application/pdf":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only PDF files are allowed")

    data = upload.file.read(config.WHITEPAPER_MAX_BYTES + 1)
    if len(data) > config.WHITEPAPER_MAX_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File exceeds the 10MB limit")
    if not data.startswith(b"%PDF"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is not a valid PDF")

    os.makedirs(os.path.dirname(path), exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, "wb") as fh:
        fh.write(data)
    os.replace(tmp_path, path)

    logger.info(f"WHITEPAPER_UPLOADED | type={paper_type} | bytes={len(data)} | by={uploaded_by}")
    return {"message": "Whitepaper uploaded successfully", "filename": os.path.basename(path), "size": len(data)}


def get_whitepaper_file(paper_type: str) -> str:
    path = whitepaper_path(paper_type)
    if not os.path.exists(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Whitepaper not found")
    return path
