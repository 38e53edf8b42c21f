"""
Service-level errors

Services raise ServiceError with the HTTP status the API should answer with
and a user-facing (Arabic) message. Routers turn it into an HTTPException.
"""


class ServiceError(Exception):
    """Business rule violation or missing resource"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class NotFoundError(ServiceError):
    def __init__(self, message: str):
        super().__init__(404, message)


class ValidationError(ServiceError):
    def __init__(self, message: str):
        super().__init__(400, message)


class ConflictError(ServiceError):
    def __init__(self, message: str):
        super().__init__(409, message)
