"""Participant directory interface.

Participants are owned by the identity service; the core only resolves them.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from ....domain.entities.participant import Participant


class ParticipantDirectory(ABC):
    """Read-only lookup of participants by id."""

    @abstractmethod
    async def resolve(self, participant_id: str) -> Optional[Participant]:
        """Find a participant by ID, active or not."""
        pass

    @abstractmethod
    async def resolve_many(self, participant_ids: Iterable[str]) -> Dict[str, Participant]:
        """Resolve several participants at once; unknown ids are left out."""
        pass
