from typing import Optional

from flask import current_app

from hackduel.models import GUEST, HOST, Duel
from hackduel.services.profile import award_points, get_profile
from . import store
from .errors import ProfileMissingError

IN_PROGRESS = 'in_progress'
FINISHED = 'finished'
DISCONNECTED = 'disconnected'
WON = 'won'


def winning_side(duel: Duel, winning_score: int) -> Optional[str]:
    """The side that alone has reached the winning score, if any."""
    host_reached = duel.host_score >= winning_score
    guest_reached = duel.guest_score >= winning_score
    if host_reached == guest_reached:
        return None
    return HOST if host_reached else GUEST


def _settle(duel: Duel, side: str) -> None:
    """Record stats on both profiles and pay out; caller owns the commit."""
    cfg = current_app.config
    winning_points = int(cfg.get('WINNING_POINTS', 5))
    participation_points = int(cfg.get('PARTICIPATION_POINTS', 1))
    max_scoring = int(cfg.get('MAX_SCORING_DUELS', 25))

    if side == HOST:
        winner_id, loser_id = duel.host_id, duel.guest_id
    else:
        winner_id, loser_id = duel.guest_id, duel.host_id

    winner = get_profile(winner_id)
    if winner is None:
        raise ProfileMissingError(winner_id)
    loser = get_profile(loser_id)
    if loser is None:
        raise ProfileMissingError(loser_id)

    for profile, won, points in ((winner, True, winning_points), (loser, False, participation_points)):
        stats = profile.stats
        # Eligibility uses the count before this duel is recorded: the
        # player's MAX_SCORING_DUELS-th scoring duel (0-indexed) is unpaid.
        eligible = duel.is_scoring_duel and stats.unique_duels_played < max_scoring
        profile.stats = stats.record(won=won, scoring=duel.is_scoring_duel)
        if eligible:
            award_points(profile.user_id, points)
        current_app.logger.info(
            f"[duel-settle] duel={duel.id} user={profile.user_id} won={won} "
            f"scoring={duel.is_scoring_duel} paid={points if eligible else 0}"
        )


def evaluate(duel: Duel) -> str:
    """Advance a duel after a committed mutation.

    Disconnects end the match without rewards and take priority over a win.
    A win settles both profiles and finishes the duel in one transaction
    guarded by the duel's version, so concurrent evaluations pay out once.
    Evaluating a finished duel is a no-op.
    """
    duel_id = duel.id
    winning_score = int(current_app.config.get('WINNING_SCORE', 3))

    def unit():
        current = store.load_duel(duel_id, lock=True)
        if current.has_disconnect:
            if not current.has_finished or current.is_scoring_duel:
                current.has_finished = True
                current.is_scoring_duel = False
            return DISCONNECTED
        if current.has_finished:
            return FINISHED
        side = winning_side(current, winning_score)
        if side is None:
            return IN_PROGRESS
        _settle(current, side)
        current.has_finished = True
        return WON

    outcome = store.commit_atomically(unit, f"evaluate duel={duel_id}")
    if outcome in (DISCONNECTED, WON):
        current_app.logger.info(f"[duel-finish] duel={duel_id} outcome={outcome}")
    return outcome
