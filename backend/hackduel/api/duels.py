from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required

from hackduel import socketio
from hackduel.auth import ROLE_ADMIN, role_required
from hackduel.services.duels import (
    COMMITTED,
    DuelError,
    ProfileMissingError,
    create_duel,
    parse_update_fields,
    propose_update,
)
from hackduel.services.duels.admission import parse_create_request
from hackduel.services.duels import store


duels = Blueprint('duels', __name__)


def _emit_duel_update(duel_id: int, status: str) -> None:
    socketio.emit('duel_update', {'duelId': duel_id, 'status': status}, to=f"duel:{duel_id}", namespace='/ws')


@duels.errorhandler(DuelError)
def handle_duel_error(err: DuelError):
    if isinstance(err, ProfileMissingError):
        current_app.logger.error(f"[duel-integrity] {err.message}")
    return jsonify(err.to_dict()), err.status_code


@duels.route('/', methods=['POST'])
@login_required
def create():
    host_id, guest_id = parse_create_request(request.get_json(silent=True))
    duel = create_duel(host_id, guest_id)
    return jsonify(duel.to_dict()), 201


@duels.route('/<string:duel_id>/', methods=['GET'])
@login_required
def get_duel(duel_id):
    duel = store.load_duel(duel_id)
    return jsonify(duel.to_dict())


@duels.route('/<string:duel_id>/', methods=['PUT'])
@login_required
def update_duel(duel_id):
    # Validate before the duel is looked up so bad bodies never touch state
    fields = parse_update_fields(request.get_json(silent=True))
    result = propose_update(duel_id, current_user.id, fields)
    duel = result.duel
    _emit_duel_update(duel.id, result.status)
    status_code = 200 if result.status == COMMITTED else 202
    return jsonify({'status': result.status, 'duel': duel.to_dict()}), status_code


@duels.route('/<string:duel_id>/', methods=['DELETE'])
@role_required(ROLE_ADMIN)
def delete_duel(duel_id):
    store.delete_duel(duel_id)
    current_app.logger.info(f"[duel-delete] duel={duel_id} by={current_user.id}")
    return jsonify({'success': True})
