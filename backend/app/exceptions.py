from fastapi import HTTPException


class ValidationError(HTTPException):
    """Malformed or out-of-range input. Reported to the caller, never retried."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class NotFoundError(HTTPException):
    """The referenced record does not exist or belongs to another user."""

    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


class TransientDependencyError(Exception):
    """The ledger or the notification sink failed (timeout, connectivity).

    Only raised inside the recompute/alert tail, where it is logged and
    swallowed so the triggering write still succeeds.
    """
