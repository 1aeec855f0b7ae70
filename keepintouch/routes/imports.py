"""
Contact Import Routes
Parse an uploaded CSV, LinkedIn or vCard file for review, then persist
the contacts the user selected.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from keepintouch.auth.verify import current_user_id
from keepintouch.db.helpers import DatabaseError
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.api.import_models import (
    ImportCandidateModel,
    ImportConfirmRequest,
    ImportConfirmResponse,
    ImportPreviewResponse,
)
from keepintouch.services.contact_import import (
    ContactImportError,
    UnsupportedImportFormatError,
    parse_contact_file,
)
from keepintouch.services.contacts.contact_service import confirm_import

logger = get_logger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])

MAX_UPLOAD_BYTES = 5 * 1024 * 1024


@router.post("/preview", response_model=ImportPreviewResponse)
async def preview_import(
    request: Request,
    filename: str = Query(..., min_length=1, description="Original file name, e.g. contacts.vcf"),
    user_id: str = Depends(current_user_id),
):
    """
    Parse the raw request body as a contacts file.

    The body is the file's bytes; the extension of `filename` picks the
    parser.
    """
    data = await request.body()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File is too large"
        )

    log = logger.bind(user_id=user_id, filename=filename)
    try:
        result = parse_contact_file(filename, data, log=log)
    except UnsupportedImportFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except ContactImportError as e:
        log.warning("Contact file could not be processed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Failed to process file"
        ) from e

    return ImportPreviewResponse(
        format=result.format.value,
        candidates=[ImportCandidateModel.from_domain(c) for c in result.candidates],
        total_count=result.total,
        message=result.message,
    )


@router.post("/confirm", response_model=ImportConfirmResponse, status_code=status.HTTP_201_CREATED)
async def confirm_contact_import(
    request: ImportConfirmRequest, user_id: str = Depends(current_user_id)
):
    """Create contacts for the selected candidates in one transaction."""
    candidates = [c.to_domain() for c in request.candidates]
    try:
        contacts = await confirm_import(user_id, candidates, request.selected_ids)
    except DatabaseError as e:
        logger.error("Contact import failed", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to import contacts"
        ) from e

    return ImportConfirmResponse(
        imported_count=len(contacts), contact_ids=[c.id for c in contacts]
    )
