"""Tests for the Firestore persistence client with a mocked SDK."""

from datetime import datetime, timezone

from hydratrack.core.goals import build_profile
from hydratrack.core.models import IntakeLogEntry, Profile
from hydratrack.shell.firestore_client import FirestoreConfig, HydrationFirestoreClient


USER_ID = "b" * 32


def _user_doc(mock_firestore):
    return mock_firestore.collection.return_value.document.return_value


class TestClientInit:
    """Tests for lazy client creation."""

    def test_lazy_client_uses_config(self, mock_firestore):
        from hydratrack.shell import firestore_client

        db = HydrationFirestoreClient(FirestoreConfig(project_id="proj", database="hydra"))
        assert db.client is mock_firestore
        firestore_client.firestore.Client.assert_called_once_with(project="proj", database="hydra")

    def test_client_created_once(self, mock_firestore):
        from hydratrack.shell import firestore_client

        db = HydrationFirestoreClient()
        db.client
        db.client
        firestore_client.firestore.Client.assert_called_once_with()


class TestProfileOperations:
    """Tests for profile persistence."""

    def test_get_missing_profile(self, mock_firestore):
        profile_doc = _user_doc(mock_firestore).collection.return_value.document.return_value
        profile_doc.get.return_value.exists = False

        assert HydrationFirestoreClient().get_profile(USER_ID) is None

    def test_get_profile(self, mock_firestore):
        profile_doc = _user_doc(mock_firestore).collection.return_value.document.return_value
        profile_doc.get.return_value.exists = True
        profile_doc.get.return_value.to_dict.return_value = {
            "weight": 70,
            "activity_level": "moderate",
            "weather_condition": "warm",
            "daily_goal": 3350,
        }

        profile = HydrationFirestoreClient().get_profile(USER_ID)

        assert isinstance(profile, Profile)
        assert profile.daily_goal == 3350
        _user_doc(mock_firestore).collection.assert_called_with("profile")

    def test_save_profile_serializes_enums(self, mock_firestore):
        profile_doc = _user_doc(mock_firestore).collection.return_value.document.return_value

        assert HydrationFirestoreClient().save_profile(USER_ID, build_profile(70, "Moderate", "warm"))

        data = profile_doc.set.call_args.args[0]
        assert data["activity_level"] == "moderate"
        assert data["weather_condition"] == "warm"
        assert data["daily_goal"] == 3350
        assert isinstance(data["created_at"], datetime)
        assert isinstance(data["updated_at"], datetime)

    def test_save_profile_failure(self, mock_firestore):
        profile_doc = _user_doc(mock_firestore).collection.return_value.document.return_value
        profile_doc.set.side_effect = RuntimeError("unavailable")

        assert HydrationFirestoreClient().save_profile(USER_ID, build_profile(70, "light", "mild")) is False


class TestWaterLogOperations:
    """Tests for water log persistence."""

    def test_add_entry_keyed_by_id(self, mock_firestore):
        logs = _user_doc(mock_firestore).collection.return_value
        entry = IntakeLogEntry(amount=250, owner_id=USER_ID)

        assert HydrationFirestoreClient().add_entry(USER_ID, entry) is True

        _user_doc(mock_firestore).collection.assert_called_with("water_logs")
        logs.document.assert_called_with(entry.id)
        assert logs.document.return_value.set.call_args.args[0]["amount"] == 250

    def test_add_entry_failure(self, mock_firestore):
        logs = _user_doc(mock_firestore).collection.return_value
        logs.document.return_value.set.side_effect = RuntimeError("unavailable")

        assert HydrationFirestoreClient().add_entry(USER_ID, IntakeLogEntry(amount=250, owner_id=USER_ID)) is False

    def test_get_entries_range(self, mock_firestore):
        logs = _user_doc(mock_firestore).collection.return_value
        query = logs.where.return_value.where.return_value.order_by.return_value
        doc = type("Doc", (), {})()
        doc.to_dict = lambda: {
            "id": "e1",
            "amount": 330,
            "logged_at": datetime(2024, 12, 28, 9, tzinfo=timezone.utc),
            "owner_id": USER_ID,
        }
        query.stream.return_value = [doc]
        start = datetime(2024, 12, 28, tzinfo=timezone.utc)
        end = datetime(2024, 12, 29, tzinfo=timezone.utc)

        entries = HydrationFirestoreClient().get_entries_range(USER_ID, start, end)

        assert [e.id for e in entries] == ["e1"]
        logs.where.assert_called_with("logged_at", ">=", start)
        logs.where.return_value.where.assert_called_with("logged_at", "<", end)

    def test_get_entries_range_failure(self, mock_firestore):
        logs = _user_doc(mock_firestore).collection.return_value
        logs.where.side_effect = RuntimeError("index missing")

        start = datetime(2024, 12, 28, tzinfo=timezone.utc)
        end = datetime(2024, 12, 29, tzinfo=timezone.utc)
        assert HydrationFirestoreClient().get_entries_range(USER_ID, start, end) is None
