"""Two-party agreement on duel mutations.

Neither client can change shared duel state on its own. Each proposal is
reduced to a canonical JSON string; a proposal is held in the submitter's
pending queue until the opponent submits the byte-identical string, at which
point it is pulled from the opponent's queue and applied. Each side only ever
appends to its own queue and only ever removes from the opponent's.
"""
import json
from typing import NamedTuple

from flask import current_app

from hackduel.models import DUEL_UPDATE_FIELDS, GUEST, HOST, Duel
from . import store
from .errors import DuelContentionError, DuelFinishedError, DuelForbiddenError, DuelValidationError
from .lifecycle import evaluate

PENDING = 'pending'
COMMITTED = 'committed'

SCORE_FIELDS = ('hostScore', 'guestScore')


class ProposalResult(NamedTuple):
    status: str
    duel: Duel


def parse_update_fields(data) -> dict:
    """Validate a proposal body; raises before any duel state is read."""
    if not isinstance(data, dict) or not data:
        raise DuelValidationError('Update must be a non-empty JSON object')
    unknown = sorted(set(data) - set(DUEL_UPDATE_FIELDS))
    if unknown:
        raise DuelValidationError(f"Unknown duel fields: {', '.join(unknown)}")
    for key, value in data.items():
        if key in SCORE_FIELDS:
            # bool is an int subclass; True must not pass as a score of 1
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise DuelValidationError(f'{key} must be a non-negative integer')
        elif not isinstance(value, bool):
            raise DuelValidationError(f'{key} must be a boolean')
    return dict(data)


def canonicalize(fields: dict) -> str:
    return json.dumps(fields, sort_keys=True, separators=(',', ':'))


def propose_update(duel_id, submitter_id: str, fields: dict) -> ProposalResult:
    payload = canonicalize(fields)

    def unit():
        duel = store.load_duel(duel_id, lock=True)
        role = duel.role_of(submitter_id)
        if role is None:
            raise DuelForbiddenError()
        if duel.has_finished:
            raise DuelFinishedError()
        opponent = GUEST if role == HOST else HOST
        if duel.pull_pending(opponent, payload):
            duel.apply_update(fields)
            return ProposalResult(COMMITTED, duel), role
        duel.push_pending(role, payload)
        return ProposalResult(PENDING, duel), role

    result, role = store.commit_atomically(unit, f"propose duel={duel_id} submitter={submitter_id}")
    current_app.logger.info(f"[duel-{result.status}] duel={result.duel.id} side={role} payload={payload}")

    if result.status == COMMITTED:
        try:
            evaluate(result.duel)
        except DuelContentionError:
            # The mutation is already stored; the next commit re-runs scoring
            current_app.logger.warning(f"[duel-evaluate-deferred] duel={result.duel.id}")
    return result
