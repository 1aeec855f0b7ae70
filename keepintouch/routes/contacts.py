"""
Contact API Routes
CRUD endpoints for a user's contacts.
"""

from datetime import UTC

from fastapi import APIRouter, Depends, HTTPException, Query, status

from keepintouch.auth.verify import current_user_id
from keepintouch.db.helpers import DatabaseError
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.api.contact_request import (
    CreateContactRequest,
    MarkContactedRequest,
    UpdateContactRequest,
)
from keepintouch.models.api.contact_response import (
    ContactResponse,
    ContactsListResponse,
    TagsResponse,
)
from keepintouch.models.domain.contact_domain import ContactFilters
from keepintouch.services.contacts import contact_service
from keepintouch.services.contacts.contact_service import ContactLinkError, ContactNotFoundError

logger = get_logger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _note_payload(notes) -> list[dict]:
    # Offset-less timestamps are stored as UTC so notes stay comparable
    return [
        {
            "content": n.content,
            "timestamp": (
                n.timestamp if n.timestamp.tzinfo else n.timestamp.replace(tzinfo=UTC)
            ).isoformat(),
        }
        for n in notes
    ]


@router.get("", response_model=ContactsListResponse)
async def list_contacts(
    user_id: str = Depends(current_user_id),
    status_filter: list[str] | None = Query(None, alias="status", description="Status values"),
    company: list[str] | None = Query(None, description="Company names"),
    tags: list[str] | None = Query(None, description="Contacts carrying all of these tags"),
    q: str | None = Query(None, max_length=200, description="Name search"),
):
    """List contacts with optional filters."""
    filters = ContactFilters(status=status_filter, company=company, tags=tags, search_query=q)
    try:
        contacts = await contact_service.list_contacts(user_id, filters)
    except DatabaseError as e:
        logger.error("Failed to list contacts", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to load contacts"
        ) from e

    return ContactsListResponse(
        contacts=[ContactResponse.from_domain(c) for c in contacts],
        total_count=len(contacts),
    )


@router.get("/tags", response_model=TagsResponse)
async def list_tags(user_id: str = Depends(current_user_id)):
    """Every tag used on the user's contacts."""
    return TagsResponse(tags=await contact_service.list_tags(user_id))


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(request: CreateContactRequest, user_id: str = Depends(current_user_id)):
    fields = request.model_dump()
    fields["notes"] = _note_payload(request.notes)
    try:
        contact = await contact_service.create_contact(user_id, fields)
    except DatabaseError as e:
        logger.error("Failed to create contact", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create contact"
        ) from e
    return ContactResponse.from_domain(contact)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(contact_id: str, user_id: str = Depends(current_user_id)):
    try:
        contact = await contact_service.get_contact(user_id, contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return ContactResponse.from_domain(contact)


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: str, request: UpdateContactRequest, user_id: str = Depends(current_user_id)
):
    fields = request.model_dump(exclude_unset=True)
    if request.notes is not None:
        fields["notes"] = _note_payload(request.notes)

    try:
        contact = await contact_service.update_contact(user_id, contact_id, fields)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except DatabaseError as e:
        logger.error("Failed to update contact", contact_id=contact_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update contact"
        ) from e
    return ContactResponse.from_domain(contact)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(contact_id: str, user_id: str = Depends(current_user_id)):
    try:
        await contact_service.delete_contact(user_id, contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post("/{contact_id}/contacted", response_model=ContactResponse)
async def mark_contacted(
    contact_id: str,
    request: MarkContactedRequest | None = None,
    user_id: str = Depends(current_user_id),
):
    """Record that the user reached out; defaults to now."""
    contacted_at = request.contacted_at if request else None
    try:
        contact = await contact_service.mark_contacted(user_id, contact_id, contacted_at)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return ContactResponse.from_domain(contact)


async def _change_link(user_id: str, contact_id: str, other_id: str, *, linked: bool):
    operation = contact_service.link_contacts if linked else contact_service.unlink_contacts
    try:
        contact = await operation(user_id, contact_id, other_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ContactLinkError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DatabaseError as e:
        logger.error(
            "Failed to update related contacts",
            contact_id=contact_id,
            other_id=other_id,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update related contacts",
        ) from e
    return ContactResponse.from_domain(contact)


@router.put("/{contact_id}/related/{other_id}", response_model=ContactResponse)
async def link_contacts(contact_id: str, other_id: str, user_id: str = Depends(current_user_id)):
    """Relate two contacts; both sides are updated."""
    return await _change_link(user_id, contact_id, other_id, linked=True)


@router.delete("/{contact_id}/related/{other_id}", response_model=ContactResponse)
async def unlink_contacts(
    contact_id: str, other_id: str, user_id: str = Depends(current_user_id)
):
    return await _change_link(user_id, contact_id, other_id, linked=False)
