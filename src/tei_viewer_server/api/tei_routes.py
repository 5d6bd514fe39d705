"""
TEI Routes

HTTP surface over the TEI parser and alignment index. Parsing is CPU-bound
and synchronous: the plain ``def`` routes run in FastAPI's threadpool, and
the fetch route hands parsing to the threadpool explicitly.

Malformed documents raise `MalformedMarkupError`, which the application's
exception handler turns into a 422 response with the XML diagnostic.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from starlette.concurrency import run_in_threadpool

from .dependencies import get_storage_client
from .models import TEIAlignRequest, TEIAlignResponse, TEIFetchRequest, TEIParseRequest
from ..auth.models import UserContext
from ..auth.security import get_current_user
from ..storage.client import StorageClient
from ..tei.alignment import align_document
from ..tei.models import ParsedTEIDocument
from ..tei.parser import parse_tei

router = APIRouter(prefix="/tei", tags=["tei"])


@router.post(
    "/parse",
    response_model=ParsedTEIDocument,
    summary="Parse a TEI document",
    status_code=status.HTTP_200_OK,
)
def parse_document(req: TEIParseRequest) -> ParsedTEIDocument:
    """
    Parse raw TEI XML into sections, segments, lines, words and metadata.
    """
    return parse_tei(req.xml)


@router.post(
    "/align",
    response_model=TEIAlignResponse,
    summary="Align a TEI document's sections by verse number",
)
def align(req: TEIAlignRequest) -> TEIAlignResponse:
    """
    Parse raw TEI XML and group its segments by verse key.

    Verses are returned in numeric ``book.line`` order; each verse lists its
    segments in section order.
    """
    document = parse_tei(req.xml)
    verses = align_document(document, exclude_first_section=req.exclude_first_section)
    return TEIAlignResponse(
        metadata=document.metadata,
        section_count=len(document.sections),
        verses=verses,
    )


@router.post(
    "/fetch",
    response_model=ParsedTEIDocument,
    summary="Fetch a stored TEI document by URL and parse it",
)
async def fetch_and_parse(
    req: TEIFetchRequest,
    user: Annotated[UserContext, Depends(get_current_user)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> ParsedTEIDocument:
    """
    Download the referenced document from the storage backend, then parse it.

    Only URLs under the backend's base URL are accepted (400 otherwise), and
    the download is capped at ``settings.max_document_bytes`` (413). Other
    storage failures surface as 404/502 through the storage exception
    handler.
    """
    data = await storage.fetch_bytes(req.url, owner_id=user.user_id)
    return await run_in_threadpool(parse_tei, data)
