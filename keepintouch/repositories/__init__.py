"""
SQL repositories for contacts and activities.
"""

from keepintouch.repositories.activity_repository import ActivityRepository
from keepintouch.repositories.contact_repository import ContactRepository

__all__ = ["ActivityRepository", "ContactRepository"]
