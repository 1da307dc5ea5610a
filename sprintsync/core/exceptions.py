from typing import Optional


class BacklogServiceError(Exception):
    def __init__(self, message: str, entity_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.entity_id = entity_id


class NotFoundError(BacklogServiceError):
    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type} {entity_id} not found", entity_id)
        self.entity_type = entity_type


class InvalidArgumentError(BacklogServiceError):
    pass


class InvalidStatusTransitionError(BacklogServiceError):
    def __init__(self, current: str, new: str, sprint_id: Optional[str] = None) -> None:
        super().__init__(f"Invalid transition from {current} to {new}", sprint_id)
