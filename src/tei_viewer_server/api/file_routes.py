"""
File Routes

Owner-scoped file management for the signed-in user. Every operation is
delegated to the storage backend under ``files/<user_id>/``; the identity
is only used to pick that prefix.
"""

import logging
import re
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

from .dependencies import get_storage_client
from .models import FileListResponse, OperationResult
from ..auth.models import UserContext
from ..auth.security import get_current_user
from ..config import settings
from ..storage.client import StorageClient
from ..storage.models import FileItem
from ..tei.models import ParsedTEIDocument
from ..tei.parser import parse_tei

logger = logging.getLogger("tei.files")

router = APIRouter(prefix="/files", tags=["files"])


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

FILENAME_PATTERN = re.compile(r"^[^/\\\x00-\x1f]{1,255}$")


# ---------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------

def _checked_filename(filename: str) -> str:
    """
    Reject names that would escape the owner's prefix.
    """
    if not FILENAME_PATTERN.match(filename) or filename in (".", ".."):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file name: {filename!r}",
        )
    return filename


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

@router.get(
    "",
    response_model=FileListResponse,
    summary="List the caller's files",
)
async def list_files(
    user: Annotated[UserContext, Depends(get_current_user)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> FileListResponse:
    files = await storage.list_files(user.user_id)
    return FileListResponse(files=files)


@router.post(
    "",
    response_model=FileItem,
    summary="Upload a file",
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    user: Annotated[UserContext, Depends(get_current_user)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    file: UploadFile = File(...),
) -> FileItem:
    """
    Store an uploaded file for the caller.

    Files larger than ``settings.max_document_bytes`` are rejected with 413.
    """
    filename = _checked_filename(file.filename or "")

    data = await file.read(settings.max_document_bytes + 1)
    if len(data) > settings.max_document_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds {settings.max_document_bytes} bytes.",
        )

    return await storage.upload_file(
        owner_id=user.user_id,
        filename=filename,
        data=data,
        content_type=file.content_type,
    )


@router.delete(
    "/{filename}",
    response_model=OperationResult,
    summary="Delete a file",
)
async def delete_file(
    filename: str,
    user: Annotated[UserContext, Depends(get_current_user)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> OperationResult:
    await storage.delete_file(user.user_id, _checked_filename(filename))
    return OperationResult(status="deleted", details={"name": filename})


@router.get(
    "/{filename}/tei",
    response_model=ParsedTEIDocument,
    summary="Parse one of the caller's files as TEI",
)
async def view_tei_file(
    filename: str,
    user: Annotated[UserContext, Depends(get_current_user)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> ParsedTEIDocument:
    """
    Fetch one of the caller's files and parse it.

    Non-XML files are rejected with 415 before any download happens.
    """
    item = await storage.get_file(user.user_id, _checked_filename(filename))
    if not item.is_xml:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"{filename} is not an XML document.",
        )

    data = await storage.fetch_bytes(item.url, owner_id=user.user_id)
    logger.info("Parsing %s for %s (%d bytes)", filename, user.user_id, len(data))
    return await run_in_threadpool(parse_tei, data)
