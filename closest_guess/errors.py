"""
Failure taxonomy for round operations.

Every error is a synchronous failure of the single operation that raised it.
Nothing is retried here; the caller decides.
"""


class GameError(Exception):
    status_code = 400
    code = "game_error"


class AuthorizationError(GameError):
    """Caller is not the round authority."""

    status_code = 403
    code = "unauthorized"


class PhaseError(GameError):
    """Operation invoked outside its legal phase."""

    status_code = 400
    code = "wrong_phase"


class ValidationError(GameError):
    """Bad guess/number, duplicate bet or missing commitment."""

    status_code = 400
    code = "invalid"


class IntegrityError(GameError):
    """Reveal does not reproduce the stored commitment digest."""

    status_code = 400
    code = "commitment_mismatch"


class StateConflictError(GameError):
    status_code = 409
    code = "state_conflict"


class NoParticipantsError(StateConflictError):
    code = "no_participants"


class EntitlementError(GameError):
    """Caller did not play, or did not win."""

    status_code = 403
    code = "not_entitled"


class TransferError(GameError):
    status_code = 502
    code = "transfer_failed"


class ClockUnavailableError(GameError):
    status_code = 502
    code = "clock_unavailable"


class PersistenceError(GameError):
    """Round state could not be written to the database."""

    status_code = 503
    code = "storage_unavailable"
