"""Bearer-token identity for API requests.

Tokens are HS256 JWTs carrying ``id`` and ``roles``. Nothing is stored
server-side: the request loader rebuilds the user from the token on every
request.
"""
from datetime import datetime, timedelta, timezone
from functools import wraps

from flask import current_app, jsonify
from flask_login import UserMixin, current_user
from jose import jwt, JWTError

from hackduel import login_manager

JWT_ALGORITHM = 'HS256'
ROLE_ADMIN = 'ADMIN'
ROLE_USER = 'USER'


class AuthUser(UserMixin):
    def __init__(self, user_id, roles=None):
        self.id = user_id
        self.roles = set(roles or [])

    def has_role(self, role):
        return role in self.roles


def issue_token(user_id, roles=(ROLE_USER,), expires_in=timedelta(hours=24)):
    payload = {
        'id': user_id,
        'roles': list(roles),
        'exp': datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm=JWT_ALGORITHM)


@login_manager.request_loader
def load_user_from_request(request):
    token = request.headers.get('Authorization')
    if not token:
        return None
    if token.startswith('Bearer '):
        token = token[len('Bearer '):]
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        current_app.logger.info(f"[auth-reject] {exc}")
        return None
    if not payload.get('id'):
        return None
    return AuthUser(payload['id'], payload.get('roles'))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'AuthenticationError', 'message': 'A valid bearer token is required.'}), 401


def role_required(role):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                return login_manager.unauthorized()
            if not current_user.has_role(role):
                return jsonify({'error': 'Forbidden', 'message': 'You do not have permission to perform this action.'}), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator
