class DuelError(Exception):
    """Base error for duel operations; carries its HTTP rendering."""
    status_code = 400
    error = 'DuelError'
    message = 'The duel request could not be processed.'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.error, 'message': self.message}


class DuelValidationError(DuelError):
    status_code = 400
    error = 'InvalidRequestError'
    message = 'The request body is invalid.'


class DuelNotFoundError(DuelError):
    status_code = 404
    error = 'DuelNotFoundError'
    message = 'The requested duel was not found.'


class DuelForbiddenError(DuelError):
    status_code = 403
    error = 'DuelForbiddenError'
    message = 'You do not have permission to perform this action.'


class TooManyDuelsError(DuelError):
    status_code = 409
    error = 'MaxDuelsExceededError'
    message = 'Maximum number of duels between these users has been exceeded.'


class DuelFinishedError(DuelError):
    status_code = 409
    error = 'DuelFinishedError'
    message = 'This duel has already finished.'


class DuelContentionError(DuelError):
    status_code = 409
    error = 'DuelBusyError'
    message = 'The duel was modified concurrently; retry the request.'


class ProfileMissingError(DuelError):
    """A finishing duel references a profile that does not exist."""
    status_code = 500
    error = 'DataIntegrityError'
    message = 'A duel participant has no attendee profile.'

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f'No attendee profile for user {user_id}.')
