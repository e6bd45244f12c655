"""
Exceptions raised by the evaluation services.

Each carries the HTTP status the routes answer with; the message is shown
to the user as-is.
"""


class EvaluationError(Exception):
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class ValidationError(EvaluationError):
    status_code = 400


class AuthenticationError(EvaluationError):
    status_code = 401


class PermissionDenied(EvaluationError):
    status_code = 403


class NotFoundError(EvaluationError):
    status_code = 404


class AlreadyEvaluatedError(EvaluationError):
    status_code = 409


class DuplicateError(EvaluationError):
    status_code = 409
