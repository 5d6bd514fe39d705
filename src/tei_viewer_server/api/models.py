"""
API Models for the Viewer Service

Request and response schemas for the TEI and file endpoints. Document tree
models live in `tei.models` and are returned as-is.
"""

from __future__ import annotations

from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, ConfigDict

from ..storage.models import FileItem
from ..tei.models import AlignedVerse, Metadata


# ---------------------------------------------------------------------
# Shared Results
# ---------------------------------------------------------------------

class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    Used for create/delete-style endpoints.
    """
    status: Literal["deleted", "created", "ok"]
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# TEI Models
# ---------------------------------------------------------------------

class TEIParseRequest(BaseModel):
    """
    Raw TEI XML submitted for parsing.
    """
    xml: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class TEIAlignRequest(BaseModel):
    """
    Raw TEI XML submitted for verse alignment.
    """
    xml: str = Field(..., min_length=1)
    exclude_first_section: bool = False

    model_config = ConfigDict(extra="forbid")


class TEIFetchRequest(BaseModel):
    """
    Reference to a document held by the storage backend.
    """
    url: str = Field(..., min_length=1, pattern=r"^https?://")

    model_config = ConfigDict(extra="forbid")


class TEIAlignResponse(BaseModel):
    """
    Verse-ordered alignment of a document's sections.
    """
    metadata: Metadata
    section_count: int = Field(..., ge=0)
    verses: List[AlignedVerse] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# File Models
# ---------------------------------------------------------------------

class FileListResponse(BaseModel):
    """
    All files owned by the caller.
    """
    files: List[FileItem] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
