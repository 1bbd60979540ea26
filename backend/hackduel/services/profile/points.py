from typing import Optional

from hackduel.models import AttendeeProfile


def get_profile(user_id: str) -> Optional[AttendeeProfile]:
    return AttendeeProfile.query.filter_by(user_id=user_id).first()


def award_points(user_id: str, amount: int) -> Optional[AttendeeProfile]:
    """Atomically add ``amount`` to a profile's points and lifetime total.

    Runs as a single UPDATE inside the caller's transaction; the caller owns
    the commit. Returns None when the user has no profile.
    """
    updated = AttendeeProfile.query.filter_by(user_id=user_id).update(
        {
            AttendeeProfile.points: AttendeeProfile.points + amount,
            AttendeeProfile.points_accumulated: AttendeeProfile.points_accumulated + amount,
        },
        synchronize_session='evaluate',
    )
    if not updated:
        return None
    return get_profile(user_id)
