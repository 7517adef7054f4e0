"""Domain error taxonomy.

Learn: services raise these instead of HTTPException so the same
business logic works from tests, the CLI, or any other caller. main.py
registers one handler that renders each class as a distinct, stable
(status, code) pair. None of them is retryable.
"""


class CourseRegError(Exception):
    """Base class for every expected, terminal failure."""

    status_code = 400
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailure(CourseRegError):
    """Bad or unknown credentials at login. No token is issued."""

    status_code = 401
    code = "authentication_failed"
    default_message = "Invalid username or password"


class Unauthenticated(CourseRegError):
    """A protected operation was called without a valid token."""

    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required"


class InsufficientRole(CourseRegError):
    """Identity resolved, but its role may not perform the action."""

    status_code = 403
    code = "insufficient_role"
    default_message = "Access denied"


class NotOwner(CourseRegError):
    """Right role, but not the owner or subject of the target record."""

    status_code = 403
    code = "not_owner"
    default_message = "Not your resource"


class NotFound(CourseRegError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class DuplicateConstraint(CourseRegError):
    """A uniqueness rule was violated, by pre-check or by the database."""

    status_code = 409
    code = "duplicate"
    default_message = "Already exists"
