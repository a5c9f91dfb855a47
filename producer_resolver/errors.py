"""Producer catalogue exceptions."""


class ProducerError(Exception):
    """Base exception for invalid producer catalogue operations."""
    def __init__(self, message: str, kind: str = "", producer_id: str = ""):
        super().__init__(message)
        self.kind = kind
        self.producer_id = producer_id


class ProducerNotFoundError(ProducerError):
    """Producer record does not exist."""
    pass
