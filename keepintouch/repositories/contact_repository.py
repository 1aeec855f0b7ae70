"""
Contact persistence.

SQL for the contacts table. Every query is scoped by user_id; callers
pass an open connection when a statement must join a transaction.
"""

import json
from datetime import datetime
from typing import Any

import psycopg

from keepintouch.db.helpers import (
    DatabaseError,
    execute_query,
    fetch_all,
    fetch_one,
    with_db_retry,
)
from keepintouch.db.pool import get_db_transaction
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.contact_domain import Contact, ContactFilters
from keepintouch.models.domain.reminder_domain import (
    EMPTY_RECURRENCE_COLUMNS,
    ReminderState,
    ReminderStatus,
)

logger = get_logger(__name__)


class ContactRepository:
    """Persistence helpers for contacts and their reminder fields."""

    SELECT_COLUMNS = """
        id, user_id, full_name, email, mobile_phone, business_phone,
        company, job_title, linkedin_url, status, tags, notes,
        related_contacts, friendship_score, gift_ideas, scheduled_followup,
        last_contact, reminder_frequency, next_reminder, preferred_reminder_day,
        reminder_status, custom_recurrence_interval, custom_recurrence_unit,
        custom_recurrence_ends, custom_recurrence_end_date,
        custom_recurrence_occurrences, custom_recurrence_completed,
        last_reminder_completed, calendar_event_id, created_at, updated_at
    """

    # Columns a client may write through create/update
    EDITABLE_FIELDS = (
        "full_name",
        "email",
        "mobile_phone",
        "business_phone",
        "company",
        "job_title",
        "linkedin_url",
        "status",
        "tags",
        "notes",
        "related_contacts",
        "friendship_score",
        "gift_ideas",
        "scheduled_followup",
        "last_contact",
    )

    @staticmethod
    def _adapt(column: str, value: Any) -> Any:
        if column == "notes" and value is not None:
            return json.dumps(value)
        return value

    @classmethod
    def _insert_parts(cls, user_id: str, fields: dict[str, Any]) -> tuple[str, tuple]:
        columns = [c for c in cls.EDITABLE_FIELDS if c in fields]
        placeholders = ", ".join("%s::jsonb" if c == "notes" else "%s" for c in columns)
        query = f"""
            INSERT INTO contacts (user_id, {", ".join(columns)})
            VALUES (%s, {placeholders})
            RETURNING {cls.SELECT_COLUMNS}
        """
        params = (user_id, *(cls._adapt(c, fields[c]) for c in columns))
        return query, params

    @classmethod
    @with_db_retry()
    async def create_contact(cls, user_id: str, fields: dict[str, Any]) -> Contact:
        query, params = cls._insert_parts(user_id, fields)
        row = await fetch_one(query, params)
        if not row:
            raise DatabaseError("Failed to create contact", operation="create_contact")

        logger.info("Contact created", user_id=user_id, contact_id=str(row["id"]))
        return Contact.from_row(row)

    @classmethod
    async def create_contacts(cls, user_id: str, rows: list[dict[str, Any]]) -> list[Contact]:
        """Insert several contacts in one transaction; all or none are stored."""
        if not rows:
            return []

        created: list[Contact] = []
        try:
            async with await get_db_transaction() as conn:
                for fields in rows:
                    query, params = cls._insert_parts(user_id, fields)
                    row = await fetch_one(query, params, connection=conn)
                    created.append(Contact.from_row(row))
        except (DatabaseError, psycopg.Error) as e:
            # Insert failures arrive as DatabaseError, a failed COMMIT as psycopg.Error
            logger.error(
                "Bulk contact insert failed",
                user_id=user_id,
                count=len(rows),
                failed_at_row=len(created),
                error=str(e),
            )
            raise DatabaseError(
                f"Bulk insert of {len(rows)} contacts failed: {e}",
                operation="create_contacts",
                recoverable=getattr(e, "recoverable", True),
            ) from e

        logger.info("Contacts created", user_id=user_id, count=len(created))
        return created

    @classmethod
    async def get_contact(
        cls,
        user_id: str,
        contact_id: str,
        *,
        for_update: bool = False,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Contact | None:
        """Load one contact; `for_update` locks the row until the transaction ends."""
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM contacts
            WHERE id = %s AND user_id = %s
            {"FOR UPDATE" if for_update else ""}
        """
        row = await fetch_one(query, (contact_id, user_id), connection=connection)
        return Contact.from_row(row) if row else None

    @classmethod
    async def list_contacts(
        cls, user_id: str, filters: ContactFilters | None = None
    ) -> list[Contact]:
        conditions = ["user_id = %s"]
        params: list[Any] = [user_id]

        if filters:
            if filters.status:
                conditions.append("status = ANY(%s)")
                params.append(filters.status)
            if filters.company:
                conditions.append("company = ANY(%s)")
                params.append(filters.company)
            if filters.tags:
                conditions.append("tags @> %s")
                params.append(filters.tags)
            if filters.search_query:
                conditions.append("full_name ILIKE %s")
                params.append(f"%{filters.search_query}%")

        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM contacts
            WHERE {" AND ".join(conditions)}
            ORDER BY created_at DESC
        """
        rows = await fetch_all(query, tuple(params))
        return [Contact.from_row(row) for row in rows]

    @classmethod
    async def list_unique_tags(cls, user_id: str) -> list[str]:
        query = """
            SELECT DISTINCT unnest(tags) AS tag
            FROM contacts
            WHERE user_id = %s
            ORDER BY tag
        """
        rows = await fetch_all(query, (user_id,))
        return [row["tag"] for row in rows]

    @classmethod
    async def update_contact(
        cls, user_id: str, contact_id: str, fields: dict[str, Any]
    ) -> Contact | None:
        columns = [c for c in cls.EDITABLE_FIELDS if c in fields]
        if not columns:
            return await cls.get_contact(user_id, contact_id)

        assignments = ", ".join(
            f"{c} = %s::jsonb" if c == "notes" else f"{c} = %s" for c in columns
        )
        query = f"""
            UPDATE contacts
            SET {assignments}, updated_at = NOW()
            WHERE id = %s AND user_id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        params = (*(cls._adapt(c, fields[c]) for c in columns), contact_id, user_id)
        row = await fetch_one(query, params)
        if row:
            logger.info("Contact updated", contact_id=contact_id, fields=columns)
        return Contact.from_row(row) if row else None

    @classmethod
    async def delete_contact(cls, user_id: str, contact_id: str) -> bool:
        query = "DELETE FROM contacts WHERE id = %s AND user_id = %s"
        deleted = await execute_query(query, (contact_id, user_id))
        if deleted:
            logger.info("Contact deleted", contact_id=contact_id)
        return deleted > 0

    @classmethod
    async def set_related_contacts(
        cls,
        user_id: str,
        contact_id: str,
        related_contacts: list[str],
        *,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Contact | None:
        query = f"""
            UPDATE contacts
            SET related_contacts = %s, updated_at = NOW()
            WHERE id = %s AND user_id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query, (related_contacts, contact_id, user_id), connection=connection
        )
        return Contact.from_row(row) if row else None

    # ------------------------------------------------------------------
    # Reminder fields
    # ------------------------------------------------------------------

    @classmethod
    def _reminder_columns(cls, state: ReminderState) -> dict[str, Any]:
        recurrence = (
            state.custom_recurrence.to_columns()
            if state.custom_recurrence is not None
            else EMPTY_RECURRENCE_COLUMNS
        )
        # Plain str: psycopg would otherwise dump enum members by name
        frequency = str(state.frequency) if state.frequency is not None else None
        return {
            "reminder_frequency": frequency,
            "next_reminder": state.next_reminder,
            "reminder_status": ReminderStatus(state.status).value,
            **recurrence,
            "custom_recurrence_completed": state.completed_occurrences,
            "preferred_reminder_day": state.preferred_day,
        }

    @classmethod
    async def save_reminder(
        cls,
        user_id: str,
        contact_id: str,
        state: ReminderState,
        *,
        completed_at: datetime | None = None,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Contact | None:
        """
        Write every reminder column of a contact in a single UPDATE.

        With `completed_at`, last_contact and last_reminder_completed are
        stamped in the same statement.
        """
        columns = cls._reminder_columns(state)
        assignments = [f"{column} = %s" for column in columns]
        params: list[Any] = list(columns.values())

        if completed_at is not None:
            assignments += ["last_contact = %s", "last_reminder_completed = %s"]
            params += [completed_at, completed_at]

        query = f"""
            UPDATE contacts
            SET {", ".join(assignments)}, updated_at = NOW()
            WHERE id = %s AND user_id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (*params, contact_id, user_id), connection=connection)
        return Contact.from_row(row) if row else None

    @classmethod
    async def set_reminder_status(
        cls, user_id: str, contact_id: str, status: ReminderStatus
    ) -> Contact | None:
        """Status-only write; next_reminder is left untouched."""
        query = f"""
            UPDATE contacts
            SET reminder_status = %s, updated_at = NOW()
            WHERE id = %s AND user_id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (ReminderStatus(status).value, contact_id, user_id))
        return Contact.from_row(row) if row else None

    @classmethod
    async def get_due_reminders(cls, user_id: str, as_of: datetime) -> list[Contact]:
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM contacts
            WHERE user_id = %s
              AND reminder_frequency IS NOT NULL
              AND next_reminder <= %s
            ORDER BY next_reminder ASC
        """
        rows = await fetch_all(query, (user_id, as_of))
        return [Contact.from_row(row) for row in rows]

    @classmethod
    async def set_calendar_event_id(
        cls, user_id: str, contact_id: str, event_id: str | None
    ) -> None:
        query = """
            UPDATE contacts
            SET calendar_event_id = %s, updated_at = NOW()
            WHERE id = %s AND user_id = %s
        """
        await execute_query(query, (event_id, contact_id, user_id))
