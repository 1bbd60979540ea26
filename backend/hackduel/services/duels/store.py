from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from hackduel import db
from hackduel.models import Duel
from .errors import DuelContentionError, DuelNotFoundError


def parse_duel_id(duel_id) -> int:
    """Duel ids arrive as path strings; anything non-numeric cannot exist."""
    try:
        return int(duel_id)
    except (TypeError, ValueError):
        raise DuelNotFoundError()


def load_duel(duel_id, lock: bool = False) -> Duel:
    query = Duel.query.filter_by(id=parse_duel_id(duel_id))
    if lock:
        query = query.with_for_update()
    duel = query.first()
    if not duel:
        raise DuelNotFoundError()
    return duel


def duels_between(user_a: str, user_b: str, lock: bool = False):
    query = Duel.between(user_a, user_b)
    if lock:
        query = query.with_for_update()
    return query.all()


def create_duel_record(duel: Duel) -> Duel:
    db.session.add(duel)
    db.session.commit()
    return duel


def delete_duel(duel_id) -> None:
    duel = load_duel(duel_id)
    db.session.delete(duel)
    db.session.commit()


def commit_atomically(unit, describe: str):
    """Run ``unit`` and commit, retrying when a duel row changed underneath.

    ``unit`` must (re)load every row it mutates, since a lost race rolls the
    session back and expires all loaded state. Duel writes are conditional on
    the version read, so a concurrent writer surfaces here as StaleDataError.
    """
    attempts = int(current_app.config.get('DUEL_COMMIT_RETRIES', 3)) + 1
    for attempt in range(1, attempts + 1):
        try:
            result = unit()
            db.session.commit()
            return result
        except StaleDataError:
            db.session.rollback()
            current_app.logger.warning(f"[duel-cas-retry] {describe} attempt={attempt}/{attempts}")
        except Exception:
            db.session.rollback()
            raise
    raise DuelContentionError()
