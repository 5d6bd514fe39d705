"""
Storage Data Models

Schema of a stored file as reported by the storage backend.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FileItem(BaseModel):
    """
    One uploaded file, owned by a single user.

    Objects live under ``files/<user_id>/<name>`` in the backend; ``id`` is
    the object's base name.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    size: int = Field(default=0, ge=0)
    type: str = "application/octet-stream"
    url: str = Field(..., min_length=1)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_xml(self) -> bool:
        return self.type in ("text/xml", "application/xml") or self.name.lower().endswith(".xml")
