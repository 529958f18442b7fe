"""Per-client scan history and profile state."""

import logging
from dataclasses import dataclass
from typing import Protocol

from health_scanner.domain.analysis import ProductAnalysis
from health_scanner.domain.profile import HealthGoals, UserProfile
from health_scanner.errors import PersistenceReadError

_logger = logging.getLogger(__name__)


class ClientStateRepository(Protocol):
    """Persistence interface for client history and profile records."""

    def load_history(self, client_id: str) -> list[ProductAnalysis]:
        """Return stored history, newest first. Raises PersistenceReadError."""

    def save_history(self, client_id: str, history: list[ProductAnalysis]) -> None:
        """Replace the stored history. Raises PersistenceWriteError."""

    def load_profile(self, client_id: str) -> UserProfile | None:
        """Return the stored profile, if any. Raises PersistenceReadError."""

    def save_profile(self, client_id: str, profile: UserProfile) -> None:
        """Replace the stored profile. Raises PersistenceWriteError."""


@dataclass
class ClientStateService:
    """Reads client state at the start of each action and writes it back once.

    Nothing is kept between actions, so every worker sees the stored rows.
    """

    repository: ClientStateRepository

    def get_history(self, client_id: str) -> list[ProductAnalysis]:
        """Return the scan history, most recent first.

        A failed read yields an empty history for this call only.
        """
        try:
            return self._read_history(client_id)
        except PersistenceReadError:
            _logger.warning(
                "Failed to load history for client %s; returning empty",
                client_id,
                exc_info=True,
            )
            return []

    def find_by_barcode(self, client_id: str, barcode: str) -> ProductAnalysis | None:
        """Return the history entry for a barcode, if present."""
        for item in self.get_history(client_id):
            if item.barcode == barcode:
                return item
        return None

    def find_by_id(self, client_id: str, item_id: str) -> ProductAnalysis | None:
        """Return the history entry with the given id, if present."""
        for item in self.get_history(client_id):
            if item.id == item_id:
                return item
        return None

    def add_to_history(
        self, client_id: str, analysis: ProductAnalysis
    ) -> list[ProductAnalysis]:
        """Prepend an analysis, replacing any entry with the same id.

        Raises PersistenceReadError without writing when the stored history
        cannot be read, so a failed read never overwrites it.
        """
        current = self._read_history(client_id)
        history = [analysis] + [item for item in current if item.id != analysis.id]
        self.repository.save_history(client_id, history)
        return history

    def clear_history(self, client_id: str) -> None:
        """Remove every history entry."""
        self.repository.save_history(client_id, [])

    def get_profile(self, client_id: str) -> UserProfile | None:
        """Return the profile, or None if goals were never saved or unreadable."""
        try:
            return self.repository.load_profile(client_id)
        except PersistenceReadError:
            _logger.warning(
                "Failed to load profile for client %s; using defaults",
                client_id,
                exc_info=True,
            )
            return None

    def get_goals(self, client_id: str) -> HealthGoals:
        """Return saved goals or the defaults."""
        profile = self.get_profile(client_id)
        return profile.goals if profile else HealthGoals()

    def save_goals(self, client_id: str, goals: HealthGoals) -> UserProfile:
        """Persist goals, creating the profile on first save."""
        profile = UserProfile(goals=goals)
        self.repository.save_profile(client_id, profile)
        return profile

    def _read_history(self, client_id: str) -> list[ProductAnalysis]:
        seen: set[str] = set()
        history: list[ProductAnalysis] = []
        for item in self.repository.load_history(client_id):
            if item.id in seen:
                continue
            seen.add(item.id)
            history.append(item)
        return history
