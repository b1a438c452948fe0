class EducareError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(EducareError):
    """Bad credentials or an identity provider rejection."""

    status_code = 400


class UnauthorizedError(EducareError):
    """Missing, malformed or expired bearer token."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(EducareError):
    status_code = 404
