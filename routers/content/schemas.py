"""Content schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from core.schemas import CamelModel


class ContentItem(CamelModel):
    key: str = Field(..., min_length=1, max_length=200, pattern=r"^[A-Za-z0-9_.\-]+$")
    value: str
    title: Optional[str] = Field(None, max_length=200)
    section: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


class ContentResponse(CamelModel):
    id: int
    key: str
    title: Optional[str] = None
    value: str
    section: Optional[str] = None
    is_active: bool
    updated_by: Optional[str] = None
    updated_at: datetime


class ContentListResponse(CamelModel):
    data: List[ContentResponse]
    timestamp: datetime
    version: int


class ContentImportRequest(CamelModel):
    content: List[Dict[str, Any]]
    overwrite: bool = False


class ContentImportStats(CamelModel):
    total: int
    imported: int
    skipped: int
    errors: int


class ContentImportResponse(CamelModel):
    message: str
    stats: ContentImportStats
    errors: Optional[List[str]] = None


class SiteMetadataRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=500)
    keywords: Optional[str] = Field(None, max_length=500)
    og_image: Optional[str] = Field(None, max_length=500)
    twitter_card: str = Field("summary_large_image", max_length=50)
    site_name: str = Field("TSU Wallet", max_length=100)


class SiteMetadataResponse(SiteMetadataRequest):
    updated_at: Optional[datetime] = None


class WhitepaperUploadResponse(CamelModel):
    message: str
    filename: str
    size: int
