"""
Errors raised by the submission and grading core.

Services raise these instead of HTTPException so they can be used without a
request; ``classroom.main`` renders them as JSON with ``status_code``.
"""


class LifecycleError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class PolicyViolation(LifecycleError):
    """An assignment or quiz rule refused the transition."""

    code = "policy_violation"

    def __init__(self, rule: str, message: str):
        super().__init__(message)
        self.rule = rule

    def to_dict(self) -> dict:
        return {**super().to_dict(), "rule": self.rule}


class NotFound(LifecycleError):
    status_code = 404
    code = "not_found"


class AuthorizationDenied(LifecycleError):
    status_code = 403
    code = "authorization_denied"


class ValidationError(LifecycleError):
    status_code = 422
    code = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {**super().to_dict(), "field": self.field}


class ConcurrentUpdate(LifecycleError):
    """Another request changed the record after it was loaded."""

    status_code = 409
    code = "concurrent_update"
