"""Duel domain services: admission, reconciliation and scoring.

HTTP routes and socket handlers import from here; nothing in this package
knows about requests or responses beyond the error classes it raises.
"""

from .admission import create_duel
from .errors import (
    DuelContentionError,
    DuelError,
    DuelFinishedError,
    DuelForbiddenError,
    DuelNotFoundError,
    DuelValidationError,
    ProfileMissingError,
    TooManyDuelsError,
)
from .lifecycle import evaluate
from .reconciliation import COMMITTED, PENDING, ProposalResult, canonicalize, parse_update_fields, propose_update
