from dataclasses import dataclass, replace
from datetime import datetime, timezone
import json

from hackduel import db


# Wire name -> column attribute for fields a proposal may set
DUEL_UPDATE_FIELDS = {
    'hostScore': 'host_score',
    'guestScore': 'guest_score',
    'hostHasDisconnected': 'host_has_disconnected',
    'guestHasDisconnected': 'guest_has_disconnected',
    'hasFinished': 'has_finished',
}

HOST = 'host'
GUEST = 'guest'


def _utcnow():
    return datetime.now(timezone.utc)


class Duel(db.Model):
    __tablename__ = 'duel'
    id = db.Column(db.Integer, primary_key=True)
    host_id = db.Column(db.String(128), nullable=False, index=True)
    guest_id = db.Column(db.String(128), nullable=False, index=True)
    host_score = db.Column(db.Integer, default=0, nullable=False)
    guest_score = db.Column(db.Integer, default=0, nullable=False)
    host_has_disconnected = db.Column(db.Boolean, default=False, nullable=False)
    guest_has_disconnected = db.Column(db.Boolean, default=False, nullable=False)
    has_finished = db.Column(db.Boolean, default=False, nullable=False)
    is_scoring_duel = db.Column(db.Boolean, default=False, nullable=False)
    pending_host = db.Column(db.Text, default='[]', nullable=False)  # JSON-encoded list of canonical proposals
    pending_guest = db.Column(db.Text, default='[]', nullable=False)
    # Compare-and-swap guard: every UPDATE is conditional on the version read
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    @classmethod
    def between(cls, user_a, user_b):
        """Query for duels between two users, in either role."""
        return cls.query.filter(db.or_(
            db.and_(cls.host_id == user_a, cls.guest_id == user_b),
            db.and_(cls.host_id == user_b, cls.guest_id == user_a),
        ))

    def role_of(self, user_id):
        if user_id == self.host_id:
            return HOST
        if user_id == self.guest_id:
            return GUEST
        return None

    def pending(self, role):
        raw = self.pending_host if role == HOST else self.pending_guest
        return json.loads(raw) if raw else []

    def _set_pending(self, role, entries):
        encoded = json.dumps(entries)
        if role == HOST:
            self.pending_host = encoded
        else:
            self.pending_guest = encoded

    def push_pending(self, role, payload):
        entries = self.pending(role)
        entries.append(payload)
        self._set_pending(role, entries)

    def pull_pending(self, role, payload):
        """Remove every occurrence of payload from role's queue; True if any was there."""
        entries = self.pending(role)
        remaining = [e for e in entries if e != payload]
        if len(remaining) == len(entries):
            return False
        self._set_pending(role, remaining)
        return True

    def apply_update(self, fields):
        for wire_name, value in fields.items():
            setattr(self, DUEL_UPDATE_FIELDS[wire_name], value)

    @property
    def has_disconnect(self):
        return bool(self.host_has_disconnected or self.guest_has_disconnected)

    def to_dict(self):
        return {
            'id': self.id,
            'hostId': self.host_id,
            'guestId': self.guest_id,
            'hostScore': self.host_score,
            'guestScore': self.guest_score,
            'hostHasDisconnected': self.host_has_disconnected,
            'guestHasDisconnected': self.guest_has_disconnected,
            'hasFinished': self.has_finished,
            'isScoringDuel': self.is_scoring_duel,
            'pendingUpdates': {
                HOST: self.pending(HOST),
                GUEST: self.pending(GUEST),
            },
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class DuelStats:
    """Lifetime duel counters stored on an attendee profile.

    Profiles created before duels existed carry no stats at all; those read
    back as ``DuelStats.empty()`` and are written out on first update.
    """
    duels_played: int = 0
    duels_won: int = 0
    unique_duels_played: int = 0

    @classmethod
    def empty(cls):
        return cls()

    @classmethod
    def from_json(cls, raw):
        if not raw:
            return cls.empty()
        data = json.loads(raw)
        return cls(
            duels_played=int(data.get('duelsPlayed') or 0),
            duels_won=int(data.get('duelsWon') or 0),
            unique_duels_played=int(data.get('uniqueDuelsPlayed') or 0),
        )

    def record(self, won, scoring):
        return replace(
            self,
            duels_played=self.duels_played + 1,
            duels_won=self.duels_won + (1 if won else 0),
            unique_duels_played=self.unique_duels_played + (1 if scoring else 0),
        )

    def to_dict(self):
        return {
            'duelsPlayed': self.duels_played,
            'duelsWon': self.duels_won,
            'uniqueDuelsPlayed': self.unique_duels_played,
        }


class AttendeeProfile(db.Model):
    __tablename__ = 'attendee_profile'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(128), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(128), nullable=False)
    points = db.Column(db.Integer, default=0, nullable=False)
    points_accumulated = db.Column(db.Integer, default=0, nullable=False)
    duel_stats = db.Column(db.Text, nullable=True)  # JSON; NULL on legacy profiles

    @property
    def stats(self):
        return DuelStats.from_json(self.duel_stats)

    @stats.setter
    def stats(self, value):
        self.duel_stats = json.dumps(value.to_dict())

    def to_dict(self):
        return {
            'userId': self.user_id,
            'displayName': self.display_name,
            'points': self.points,
            'pointsAccumulated': self.points_accumulated,
            'duelStats': self.stats.to_dict(),
        }
