"""Domain errors raised by services and mapped to JSON responses in ``main``."""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
        self.message = message


class ValidationFailed(ServiceError):
    status_code = 400


class Conflict(ServiceError):
    status_code = 400


class UploadRejected(ServiceError):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class RangeNotSatisfiable(ServiceError):
    status_code = 416

    def __init__(self, size: int, message: str = "Requested range not satisfiable"):
        super().__init__(message)
        self.size = size


class MediaProbeFailed(ServiceError):
    status_code = 500
