"""Participation ledger module.

One participation per (offer, influencer); joining is capacity-checked and
transactional.
"""

from vibein.participation.models import Participation, ParticipationState, participation_id
from vibein.participation.ledger import ParticipationLedger

__all__ = ["Participation", "ParticipationLedger", "ParticipationState", "participation_id"]
