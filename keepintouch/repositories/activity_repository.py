"""
Activity persistence (the `events` table).
"""

from datetime import datetime
from typing import Any

from keepintouch.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one
from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.activity_domain import Activity, ActivityFilters

logger = get_logger(__name__)


class ActivityRepository:
    """Persistence helpers for scheduled activities."""

    SELECT_COLUMNS = """
        id, user_id, title, description, start_time, end_time, location,
        meeting_link, color, guests, created_at, updated_at
    """

    EDITABLE_FIELDS = (
        "title",
        "description",
        "start_time",
        "end_time",
        "location",
        "meeting_link",
        "color",
        "guests",
    )

    @classmethod
    async def create_activity(cls, user_id: str, fields: dict[str, Any]) -> Activity:
        columns = [c for c in cls.EDITABLE_FIELDS if c in fields]
        query = f"""
            INSERT INTO events (user_id, {", ".join(columns)})
            VALUES (%s, {", ".join(["%s"] * len(columns))})
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (user_id, *(fields[c] for c in columns)))
        if not row:
            raise DatabaseError("Failed to create activity", operation="create_activity")

        logger.info("Activity created", user_id=user_id, activity_id=str(row["id"]))
        return Activity.from_row(row)

    @classmethod
    async def get_activity(cls, user_id: str, activity_id: str) -> Activity | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM events WHERE id = %s AND user_id = %s"
        row = await fetch_one(query, (activity_id, user_id))
        return Activity.from_row(row) if row else None

    @classmethod
    async def list_activities(
        cls, user_id: str, filters: ActivityFilters | None = None
    ) -> list[Activity]:
        conditions = ["user_id = %s"]
        params: list[Any] = [user_id]

        if filters:
            if filters.start_date:
                conditions.append("start_time >= %s")
                params.append(filters.start_date)
            if filters.end_date:
                conditions.append("end_time <= %s")
                params.append(filters.end_date)
            if filters.search_query:
                conditions.append("title ILIKE %s")
                params.append(f"%{filters.search_query}%")
            if filters.participant_id:
                conditions.append("guests @> ARRAY[%s]::uuid[]")
                params.append(filters.participant_id)

        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM events
            WHERE {" AND ".join(conditions)}
            ORDER BY start_time ASC
        """
        rows = await fetch_all(query, tuple(params))
        return [Activity.from_row(row) for row in rows]

    @classmethod
    async def update_activity(
        cls, user_id: str, activity_id: str, fields: dict[str, Any]
    ) -> Activity | None:
        columns = [c for c in cls.EDITABLE_FIELDS if c in fields]
        if not columns:
            return await cls.get_activity(user_id, activity_id)

        query = f"""
            UPDATE events
            SET {", ".join(f"{c} = %s" for c in columns)}, updated_at = NOW()
            WHERE id = %s AND user_id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (*(fields[c] for c in columns), activity_id, user_id))
        if row:
            logger.info("Activity updated", activity_id=activity_id, fields=columns)
        return Activity.from_row(row) if row else None

    @classmethod
    async def update_participants(
        cls, user_id: str, activity_id: str, guests: list[str]
    ) -> Activity | None:
        return await cls.update_activity(user_id, activity_id, {"guests": guests})

    @classmethod
    async def reschedule(
        cls, user_id: str, activity_id: str, start_time: datetime, end_time: datetime
    ) -> Activity | None:
        return await cls.update_activity(
            user_id, activity_id, {"start_time": start_time, "end_time": end_time}
        )

    @classmethod
    async def delete_activity(cls, user_id: str, activity_id: str) -> bool:
        query = "DELETE FROM events WHERE id = %s AND user_id = %s"
        deleted = await execute_query(query, (activity_id, user_id))
        if deleted:
            logger.info("Activity deleted", activity_id=activity_id)
        return deleted > 0
