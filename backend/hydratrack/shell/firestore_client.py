"""Firestore Client - Persistence for profiles and water logs.

This module handles all database I/O for hydration tracking.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from google.cloud import firestore

from ..core.models import Profile, IntakeLogEntry, utcnow


logger = logging.getLogger(__name__)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


class HydrationFirestoreClient:
    """Client for persisting profiles and water logs to Firestore.

    Document structure per user:
        users/{user_id}/
            profile/config: { weight, activity_level, weather_condition, daily_goal, ... }
            water_logs/{entry_id}: { amount, logged_at, owner_id }

    Water log entries are separate documents, so appends never contend.
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        return self.client.collection("users").document(user_id)

    def _profile_ref(self, user_id: str) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("profile").document("config")

    def _logs_collection(self, user_id: str) -> firestore.CollectionReference:
        return self._user_ref(user_id).collection("water_logs")

    # ==================== Profile Operations ====================

    def get_profile(self, user_id: str) -> Profile | None:
        """Fetch a user's profile.

        Args:
            user_id: The user's ID

        Returns:
            Profile if found, None otherwise
        """
        logger.debug("Fetching profile for user: %s", user_id[:8])
        try:
            doc = self._profile_ref(user_id).get()
            if not doc.exists:
                return None
            return Profile(**doc.to_dict())
        except Exception as e:
            logger.error("Failed to fetch profile: %s", str(e))
            return None

    def save_profile(self, user_id: str, profile: Profile) -> bool:
        """Save (create or replace) a user's profile.

        Args:
            user_id: The user's ID
            profile: Profile to save

        Returns:
            True if successful
        """
        logger.info("Saving profile for user: %s", user_id[:8])
        try:
            data = profile.model_dump(mode="json")
            data["updated_at"] = utcnow()
            data["created_at"] = profile.created_at
            self._profile_ref(user_id).set(data)
            return True
        except Exception as e:
            logger.error("Failed to save profile: %s", str(e))
            return False

    # ==================== Water Log Operations ====================

    def add_entry(self, user_id: str, entry: IntakeLogEntry) -> bool:
        """Append a water log entry.

        Args:
            user_id: The user's ID
            entry: The entry to store

        Returns:
            True if successful
        """
        logger.info("Logging %sml for user: %s", entry.amount, user_id[:8])
        try:
            self._logs_collection(user_id).document(entry.id).set(entry.model_dump())
            return True
        except Exception as e:
            logger.error("Failed to add entry: %s", str(e))
            return False

    def get_entries_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[IntakeLogEntry] | None:
        """Fetch entries logged in [start, end), most recent first.

        Args:
            user_id: The user's ID
            start: Start of range (inclusive)
            end: End of range (exclusive)

        Returns:
            List of entries (may be empty), or None if the query failed
        """
        logger.debug(
            "Fetching entries for %s from %s to %s", user_id[:8], start, end
        )
        try:
            query = (
                self._logs_collection(user_id)
                .where("logged_at", ">=", start)
                .where("logged_at", "<", end)
                .order_by("logged_at", direction=firestore.Query.DESCENDING)
            )
            entries = [IntakeLogEntry(**doc.to_dict()) for doc in query.stream()]

            logger.debug("Found %d entries in range", len(entries))
            return entries
        except Exception as e:
            logger.error("Failed to fetch entries range: %s", str(e))
            return None
