"""
DealerDesk Exceptions

Error taxonomy shared by services and routes. Each class carries the HTTP
status and short code the API layer renders in `{error, code, details}`.
"""


class DealerDeskError(Exception):
    """Base exception for DealerDesk business errors."""
    http_status = 500
    code = 'internal'

    def __init__(self, message: str, details=None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(DealerDeskError):
    """Bad or missing input."""
    http_status = 400
    code = 'validation_error'


class NotFoundError(DealerDeskError):
    """Referenced vehicle, ARB record, or user does not exist."""
    http_status = 404
    code = 'not_found'

    def __init__(self, entity: str, entity_id=None, message: str = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} not found")


class ConflictError(DealerDeskError):
    """Request conflicts with current state (duplicates, concurrent edits)."""
    http_status = 409
    code = 'conflict'


class AlreadyProcessedError(ConflictError):
    """ARB record has already left Pending."""
    code = 'already_processed'

    def __init__(self, arb_id, outcome: str = None):
        self.arb_id = arb_id
        self.outcome = outcome
        if outcome:
            msg = f"ARB record {arb_id} has already been processed (outcome: {outcome})"
        else:
            msg = f"ARB record {arb_id} has already been processed"
        super().__init__(msg)


class ForbiddenError(DealerDeskError):
    """Caller may not perform this action."""
    http_status = 403
    code = 'forbidden'


class InternalError(DealerDeskError):
    """Unexpected backend failure. Message is safe to show to users."""
    http_status = 500
    code = 'internal'
