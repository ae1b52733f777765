class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Client input is malformed
class ValidationError(AppError):
    status_code = 400


# Missing, malformed or expired credential
class AuthenticationError(AppError):
    status_code = 401


# Valid identity, resource owned by someone else
class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


# Duplicate email on signup
class ConflictError(AppError):
    status_code = 400


# Store or external service failure; never shown to the client verbatim
class DependencyError(AppError):
    status_code = 500


class StoreError(DependencyError):
    pass


class GenerationError(DependencyError):
    pass


class PasswordHashError(DependencyError):
    pass
