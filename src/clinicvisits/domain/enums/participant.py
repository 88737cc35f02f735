"""Participant roles."""

from enum import Enum


class ParticipantRole(str, Enum):
    """Closed set of roles a participant can hold."""

    PATIENT = "patient"
    PRACTITIONER = "practitioner"
    FINANCE = "finance"
