"""Domain errors raised by the application services.

Routers translate them into HTTP responses: authorization failures are 403,
missing resources 404 and rule violations 422 with the offending field.
"""


class DomainError(Exception):
    pass


class AuthorizationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class ValidationError(DomainError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class ReservationExpiredError(ValidationError):
    """The cancel request arrived after the deadline; the reservation was expired instead."""


class ConsistencyError(DomainError):
    """A concurrent writer changed a row between our read and our write."""
