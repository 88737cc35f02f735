"""
Domain entities package.
"""

from .participant import Participant
from .treatment import Treatment
from .visit import Visit

__all__ = [
    "Participant",
    "Treatment",
    "Visit",
]
