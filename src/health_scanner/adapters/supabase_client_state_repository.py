"""Supabase repository for client history and profile records."""

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import TypeAdapter, ValidationError
from supabase import Client

from health_scanner.domain.analysis import ProductAnalysis
from health_scanner.domain.profile import UserProfile
from health_scanner.errors import PersistenceReadError, PersistenceWriteError
from health_scanner.services.client_state import ClientStateRepository

HISTORY_KEY = "scannedHistory"
PROFILE_KEY = "userProfile"

_HISTORY_ADAPTER = TypeAdapter(list[ProductAnalysis])


@dataclass
class SupabaseClientStateRepository(ClientStateRepository):
    """Stores each client record as a JSON value keyed by client id and name."""

    client: Client
    table_name: str = "client_state"

    def load_history(self, client_id: str) -> list[ProductAnalysis]:
        """Return the stored scan history."""
        value = self._load(client_id, HISTORY_KEY)
        if value is None:
            return []
        try:
            return _HISTORY_ADAPTER.validate_python(value)
        except ValidationError as exc:
            raise PersistenceReadError("Stored history is malformed") from exc

    def save_history(self, client_id: str, history: list[ProductAnalysis]) -> None:
        """Replace the stored scan history."""
        value = [
            item.model_dump(mode="json", by_alias=True, exclude_none=True)
            for item in history
        ]
        self._save(client_id, HISTORY_KEY, value)

    def load_profile(self, client_id: str) -> UserProfile | None:
        """Return the stored profile."""
        value = self._load(client_id, PROFILE_KEY)
        if value is None:
            return None
        try:
            return UserProfile.model_validate(value)
        except ValidationError as exc:
            raise PersistenceReadError("Stored profile is malformed") from exc

    def save_profile(self, client_id: str, profile: UserProfile) -> None:
        """Replace the stored profile."""
        self._save(client_id, PROFILE_KEY, profile.model_dump(mode="json"))

    def _load(self, client_id: str, key: str) -> object | None:
        try:
            response = (
                self.client.table(self.table_name)
                .select("value")
                .eq("client_id", client_id)
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise PersistenceReadError(f"Failed to read {key}") from exc
        if not response.data:
            return None
        return response.data[0].get("value")

    def _save(self, client_id: str, key: str, value: object) -> None:
        try:
            self.client.table(self.table_name).upsert(
                {
                    "client_id": client_id,
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="client_id,key",
            ).execute()
        except Exception as exc:
            raise PersistenceWriteError(f"Failed to write {key}") from exc
