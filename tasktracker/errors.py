class TaskTrackerError(Exception):
    """Base for failures the API maps to a status code and a user-safe message."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateEmail(TaskTrackerError):
    status_code = 409
    message = "User with this email already exists"


class InvalidCredentials(TaskTrackerError):
    status_code = 401
    message = "Invalid credentials"


class InvalidToken(TaskTrackerError):
    status_code = 401
    message = "Invalid or expired token"


class NotFound(TaskTrackerError):
    status_code = 404
    message = "Task not found"


class StoreError(TaskTrackerError):
    # detail stays in the logs, the client only sees the generic message
    status_code = 500
    message = "Internal Server Error"
