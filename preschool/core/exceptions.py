from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidStatusTransition(ServiceError):
    """Raised when a lifecycle move is not in the allowed transition table."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        super().__init__(
            f"Invalid status transition for {entity}: {current} -> {target}",
            status.HTTP_400_BAD_REQUEST,
        )
        self.entity = entity
        self.current = current
        self.target = target
