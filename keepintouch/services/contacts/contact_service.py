"""
Contact service: CRUD on contacts, relationship links between contacts
and persisting reviewed import candidates.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from keepintouch.db.pool import get_db_transaction
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.contact_domain import (
    Contact,
    ContactFilters,
    ImportedContactCandidate,
)
from keepintouch.repositories.contact_repository import ContactRepository

logger = get_logger(__name__)


class ContactNotFoundError(Exception):
    """Raised when a contact does not exist for the calling user."""

    def __init__(self, contact_id: str):
        super().__init__(f"Contact not found: {contact_id}")
        self.contact_id = contact_id


class ContactLinkError(Exception):
    """Raised for a relationship link that cannot exist, e.g. a contact to itself."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


async def create_contact(user_id: str, fields: dict[str, Any]) -> Contact:
    return await ContactRepository.create_contact(user_id, fields)


async def get_contact(user_id: str, contact_id: str) -> Contact:
    contact = await ContactRepository.get_contact(user_id, contact_id)
    if contact is None:
        raise ContactNotFoundError(contact_id)
    return contact


async def list_contacts(user_id: str, filters: ContactFilters | None = None) -> list[Contact]:
    return await ContactRepository.list_contacts(user_id, filters)


async def list_tags(user_id: str) -> list[str]:
    return await ContactRepository.list_unique_tags(user_id)


async def update_contact(user_id: str, contact_id: str, fields: dict[str, Any]) -> Contact:
    contact = await ContactRepository.update_contact(user_id, contact_id, fields)
    if contact is None:
        raise ContactNotFoundError(contact_id)
    return contact


async def delete_contact(user_id: str, contact_id: str) -> None:
    if not await ContactRepository.delete_contact(user_id, contact_id):
        raise ContactNotFoundError(contact_id)


async def mark_contacted(
    user_id: str,
    contact_id: str,
    contacted_at: datetime | None = None,
    *,
    clock: Callable[[], datetime] = _utcnow,
) -> Contact:
    """Stamp last_contact, defaulting to now. The reminder series is untouched."""
    when = contacted_at or clock()
    return await update_contact(user_id, contact_id, {"last_contact": when})


async def _update_link(user_id: str, contact_id: str, other_id: str, *, linked: bool) -> Contact:
    if contact_id == other_id:
        raise ContactLinkError("A contact cannot be related to itself")

    async with await get_db_transaction() as conn:
        # Lock both rows in id order so opposite links cannot deadlock
        locked: dict[str, Contact] = {}
        for cid in sorted((contact_id, other_id)):
            contact = await ContactRepository.get_contact(
                user_id, cid, for_update=True, connection=conn
            )
            if contact is None:
                raise ContactNotFoundError(cid)
            locked[cid] = contact

        updated: dict[str, Contact] = {}
        for cid, partner in ((contact_id, other_id), (other_id, contact_id)):
            related = [r for r in locked[cid].related_contacts if r != partner]
            if linked:
                related.append(partner)
            updated[cid] = await ContactRepository.set_related_contacts(
                user_id, cid, related, connection=conn
            )

    logger.info(
        "Contacts linked" if linked else "Contacts unlinked",
        contact_id=contact_id,
        other_id=other_id,
    )
    return updated[contact_id]


async def link_contacts(user_id: str, contact_id: str, other_id: str) -> Contact:
    """
    Relate two contacts to each other.

    Both related_contacts lists change in one transaction, so the relation
    is always symmetric. Linking an already linked pair is a no-op.

    Raises:
        ContactLinkError: Both ids are the same contact
        ContactNotFoundError: Either contact is missing for this user
    """
    return await _update_link(user_id, contact_id, other_id, linked=True)


async def unlink_contacts(user_id: str, contact_id: str, other_id: str) -> Contact:
    """Remove the relation from both contacts."""
    return await _update_link(user_id, contact_id, other_id, linked=False)


async def confirm_import(
    user_id: str,
    candidates: list[ImportedContactCandidate],
    selected_ids: list[str] | set[str],
) -> list[Contact]:
    """
    Persist the candidates the user ticked on the review screen.

    Candidates are matched on their ephemeral client_id, which is not
    stored. Candidates without a name are skipped.
    """
    selected = set(selected_ids)
    rows = [
        candidate.to_contact_fields()
        for candidate in candidates
        if candidate.client_id in selected and candidate.full_name
    ]

    if not rows:
        logger.info("Import confirmed with no contacts selected", user_id=user_id)
        return []

    contacts = await ContactRepository.create_contacts(user_id, rows)
    logger.info(
        "Contact import confirmed",
        user_id=user_id,
        offered=len(candidates),
        imported=len(contacts),
    )
    return contacts
