"""
Typed exceptions shared by the record services.
"""


class ServiceError(Exception):
    """Base exception for service errors."""


class RecordNotFoundError(ServiceError):
    """A record addressed by id does not exist."""

    def __init__(self, collection: str, record_id: str) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No record '{record_id}' in {collection}")
