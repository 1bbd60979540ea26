import pytest
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from conftest import GUEST_ID, HOST_ID, add_duel, add_profile, profile_dict
from hackduel import db
from hackduel.models import Duel
from hackduel.services.duels import (
    COMMITTED,
    PENDING,
    DuelContentionError,
    DuelFinishedError,
    DuelForbiddenError,
    DuelNotFoundError,
    DuelValidationError,
    canonicalize,
    parse_update_fields,
    propose_update,
)


def _reload(duel_id):
    db.session.expire_all()
    return db.session.get(Duel, duel_id)


def test_canonical_form_ignores_key_order():
    a = canonicalize({'hostScore': 1, 'guestScore': 2})
    b = canonicalize({'guestScore': 2, 'hostScore': 1})
    assert a == b == '{"guestScore":2,"hostScore":1}'


@pytest.mark.parametrize('body', [
    None,
    {},
    [],
    {'hostId': 'someone'},
    {'isScoringDuel': True},
    {'hostScore': -1},
    {'hostScore': 1.5},
    {'hostScore': True},
    {'hostScore': '1'},
    {'hasFinished': 1},
])
def test_parse_update_fields_rejects_bad_bodies(body):
    with pytest.raises(DuelValidationError):
        parse_update_fields(body)


def test_parse_update_fields_accepts_partial_update():
    assert parse_update_fields({'guestScore': 0, 'hasFinished': False}) == {'guestScore': 0, 'hasFinished': False}


def test_single_sided_proposal_stays_pending(app_ctx):
    duel = add_duel()
    result = propose_update(duel.id, HOST_ID, {'hostScore': 1})
    assert result.status == PENDING

    stored = _reload(duel.id)
    assert stored.host_score == 0
    assert stored.pending('host') == ['{"hostScore":1}']
    assert stored.pending('guest') == []


def test_matching_proposals_commit_and_clear_queues(app_ctx):
    duel = add_duel()
    assert propose_update(duel.id, HOST_ID, {'hostScore': 1}).status == PENDING
    result = propose_update(duel.id, GUEST_ID, {'hostScore': 1})
    assert result.status == COMMITTED

    stored = _reload(duel.id)
    assert stored.host_score == 1
    assert stored.pending('host') == []
    assert stored.pending('guest') == []
    assert stored.has_finished is False


def test_key_order_does_not_prevent_agreement(app_ctx):
    duel = add_duel()
    propose_update(duel.id, HOST_ID, {'hostScore': 1, 'guestScore': 1})
    result = propose_update(duel.id, GUEST_ID, {'guestScore': 1, 'hostScore': 1})
    assert result.status == COMMITTED
    stored = _reload(duel.id)
    assert (stored.host_score, stored.guest_score) == (1, 1)


def test_different_payloads_never_commit(app_ctx):
    duel = add_duel()
    assert propose_update(duel.id, HOST_ID, {'hostScore': 1}).status == PENDING
    assert propose_update(duel.id, GUEST_ID, {'hostScore': 1, 'guestScore': 0}).status == PENDING
    assert propose_update(duel.id, GUEST_ID, {'hostScore': 2}).status == PENDING

    stored = _reload(duel.id)
    assert stored.host_score == 0
    assert stored.pending('host') == ['{"hostScore":1}']
    assert stored.pending('guest') == ['{"guestScore":0,"hostScore":1}', '{"hostScore":2}']


def test_same_side_repeating_itself_does_not_commit(app_ctx):
    duel = add_duel()
    propose_update(duel.id, HOST_ID, {'hostScore': 1})
    result = propose_update(duel.id, HOST_ID, {'hostScore': 1})
    assert result.status == PENDING

    stored = _reload(duel.id)
    assert stored.host_score == 0
    assert stored.pending('host') == ['{"hostScore":1}', '{"hostScore":1}']


def test_commit_only_removes_from_opponent_queue(app_ctx):
    duel = add_duel(
        pending_host=['{"guestScore":1}'],
        pending_guest=['{"hostScore":1}', '{"guestScore":2}'],
    )
    result = propose_update(duel.id, HOST_ID, {'hostScore': 1})
    assert result.status == COMMITTED

    stored = _reload(duel.id)
    assert stored.pending('guest') == ['{"guestScore":2}']
    assert stored.pending('host') == ['{"guestScore":1}']


def test_non_participant_is_forbidden(app_ctx):
    duel = add_duel()
    with pytest.raises(DuelForbiddenError):
        propose_update(duel.id, 'github00000', {'hostScore': 1})
    stored = _reload(duel.id)
    assert stored.pending('host') == [] and stored.pending('guest') == []


def test_unknown_duel_is_not_found(app_ctx):
    with pytest.raises(DuelNotFoundError):
        propose_update(999, HOST_ID, {'hostScore': 1})
    with pytest.raises(DuelNotFoundError):
        propose_update('invalid', HOST_ID, {'hostScore': 1})


def test_finished_duel_is_frozen(app_ctx):
    duel = add_duel(host_score=3, has_finished=True, pending_guest=['{"hostScore":0}'])
    with pytest.raises(DuelFinishedError):
        propose_update(duel.id, HOST_ID, {'hostScore': 0})
    stored = _reload(duel.id)
    assert stored.host_score == 3
    assert stored.pending('guest') == ['{"hostScore":0}']


def test_lost_race_is_retried(app_ctx, monkeypatch):
    duel = add_duel()
    real_commit = Session.commit
    calls = {'n': 0}

    def flaky_commit(self):
        calls['n'] += 1
        if calls['n'] == 1:
            raise StaleDataError('duel row changed underneath')
        return real_commit(self)

    monkeypatch.setattr(Session, 'commit', flaky_commit)
    result = propose_update(duel.id, HOST_ID, {'hostScore': 1})
    monkeypatch.undo()

    assert result.status == PENDING
    assert calls['n'] == 2
    assert _reload(duel.id).pending('host') == ['{"hostScore":1}']


def test_persistent_contention_gives_up(app_ctx, monkeypatch):
    duel = add_duel()

    def always_stale(self):
        raise StaleDataError('duel row changed underneath')

    monkeypatch.setattr(Session, 'commit', always_stale)
    with pytest.raises(DuelContentionError):
        propose_update(duel.id, HOST_ID, {'hostScore': 1})
    monkeypatch.undo()

    assert _reload(duel.id).pending('host') == []


def test_commit_triggers_evaluation(app_ctx):
    add_profile(HOST_ID)
    add_profile(GUEST_ID)
    duel = add_duel(guest_score=2, pending_guest=['{"hostScore":3}'])

    result = propose_update(duel.id, HOST_ID, {'hostScore': 3})
    assert result.status == COMMITTED
    assert _reload(duel.id).has_finished is True
    assert profile_dict(HOST_ID)['points'] == 5
    assert profile_dict(GUEST_ID)['points'] == 1


def test_scoring_contention_still_reports_commit(app_ctx, monkeypatch):
    add_profile(HOST_ID)
    add_profile(GUEST_ID)
    duel = add_duel(guest_score=2, pending_guest=['{"hostScore":3}'])
    real_commit = Session.commit
    calls = {'n': 0}

    def stale_after_first(self):
        calls['n'] += 1
        if calls['n'] == 1:
            return real_commit(self)
        raise StaleDataError('duel row changed underneath')

    monkeypatch.setattr(Session, 'commit', stale_after_first)
    result = propose_update(duel.id, HOST_ID, {'hostScore': 3})
    monkeypatch.undo()

    assert result.status == COMMITTED
    stored = _reload(duel.id)
    assert stored.host_score == 3
    assert stored.pending('host') == [] and stored.pending('guest') == []
    # Scoring is left for the next commit to retry
    assert stored.has_finished is False
    assert profile_dict(HOST_ID)['points'] == 0
    assert profile_dict(GUEST_ID)['points'] == 0
