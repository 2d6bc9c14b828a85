"""Request failures reported back to the client that sent the event.

Every subclass carries a human-readable ``message``. ``InvalidState`` is the
exception to the rule: it usually comes from benign event races (a click that
lands just after the round finished) and is logged instead of emitted.
"""


class MatchError(Exception):
    message = 'Request failed'

    def __init__(self, message=None):
        if message:
            self.message = message
        super().__init__(self.message)


class NotFound(MatchError):
    message = 'Lobby not found'


class MatchFull(MatchError):
    message = 'Lobby is full'


class Forbidden(MatchError):
    message = 'You are not allowed to do that'


class InvalidState(MatchError):
    message = 'Action not available right now'
