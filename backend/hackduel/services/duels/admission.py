from flask import current_app

from hackduel.models import Duel
from . import store
from .errors import DuelValidationError, TooManyDuelsError


def _require_user_id(data, key):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise DuelValidationError(f'{key} must be a non-empty string')
    return value


def parse_create_request(data):
    if not isinstance(data, dict):
        raise DuelValidationError('Request body must be a JSON object')
    host_id = _require_user_id(data, 'hostId')
    guest_id = _require_user_id(data, 'guestId')
    if host_id == guest_id:
        raise DuelValidationError('hostId and guestId must differ')
    return host_id, guest_id


def create_duel(host_id: str, guest_id: str) -> Duel:
    """Create a duel between two users, subject to the per-pair ceiling.

    The new duel scores only if no unfinished scoring duel between the same
    pair (in either role) is still live.
    """
    if host_id == guest_id:
        raise DuelValidationError('hostId and guestId must differ')

    max_per_pair = int(current_app.config.get('MAX_DUELS_PER_PAIR', 5))
    # Locks the pair's rows so concurrent creates for the same pair serialize
    pair = store.duels_between(host_id, guest_id, lock=True)
    existing = len(pair)
    if existing >= max_per_pair:
        current_app.logger.info(f"[duel-reject] host={host_id} guest={guest_id} existing={existing} max={max_per_pair}")
        raise TooManyDuelsError()

    live_scoring = next((d for d in pair if not d.has_finished and d.is_scoring_duel), None)
    duel = Duel(
        host_id=host_id,
        guest_id=guest_id,
        host_score=0,
        guest_score=0,
        host_has_disconnected=False,
        guest_has_disconnected=False,
        has_finished=False,
        is_scoring_duel=live_scoring is None,
        pending_host='[]',
        pending_guest='[]',
    )
    store.create_duel_record(duel)
    current_app.logger.info(
        f"[duel-create] duel={duel.id} host={host_id} guest={guest_id} scoring={duel.is_scoring_duel}"
    )
    return duel
