"""Attendee profile collaborators used by the duel engine."""

from .points import award_points, get_profile
