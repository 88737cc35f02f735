"""
MongoDB implementation of ParticipantDirectory.
"""

import logging
from typing import Dict, Iterable, Optional

from clinicvisits.application.ports.repositories.participant_repo import (
    ParticipantDirectory,
)
from clinicvisits.domain.entities.participant import Participant
from clinicvisits.domain.errors import ValidationError

from ..models.participant_m import ParticipantMongo

logger = logging.getLogger(__name__)


class MongoParticipantDirectory(ParticipantDirectory):
    """MongoDB implementation of ParticipantDirectory.

    Documents that do not form a valid participant are treated as unknown
    and logged, so one bad record cannot fail a whole report.
    """

    async def resolve(self, participant_id: str) -> Optional[Participant]:
        participant_mongo = await ParticipantMongo.find_one(
            ParticipantMongo.participant_id == participant_id
        )
        if not participant_mongo:
            return None
        return self._mongo_to_domain(participant_mongo)

    async def resolve_many(self, participant_ids: Iterable[str]) -> Dict[str, Participant]:
        participants_mongo = await ParticipantMongo.find(
            {"participant_id": {"$in": list(participant_ids)}}
        ).to_list()
        resolved: Dict[str, Participant] = {}
        for participant_mongo in participants_mongo:
            participant = self._mongo_to_domain(participant_mongo)
            if participant is not None:
                resolved[participant.participant_id] = participant
        return resolved

    @staticmethod
    def _mongo_to_domain(participant_mongo: ParticipantMongo) -> Optional[Participant]:
        try:
            return Participant(
                participant_id=participant_mongo.participant_id,
                name=participant_mongo.name,
                role=participant_mongo.role,
                is_active=participant_mongo.is_active,
                specialization=participant_mongo.specialization,
                email=participant_mongo.email,
                phone=participant_mongo.phone,
            )
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid participant record %s: %s",
                participant_mongo.participant_id,
                exc.message,
            )
            return None
