"""In-process implementation of ParticipantDirectory."""

from typing import Dict, Iterable, Optional

from clinicvisits.application.ports.repositories.participant_repo import (
    ParticipantDirectory,
)
from clinicvisits.domain.entities.participant import Participant


class InMemoryParticipantDirectory(ParticipantDirectory):
    """Participant lookup backed by a dictionary."""

    def __init__(self, participants: Iterable[Participant] = ()) -> None:
        self._participants: Dict[str, Participant] = {}
        for participant in participants:
            self.add(participant)

    def add(self, participant: Participant) -> Participant:
        self._participants[participant.participant_id] = participant
        return participant

    async def resolve(self, participant_id: str) -> Optional[Participant]:
        return self._participants.get(participant_id)

    async def resolve_many(self, participant_ids: Iterable[str]) -> Dict[str, Participant]:
        return {
            pid: self._participants[pid]
            for pid in participant_ids
            if pid in self._participants
        }
