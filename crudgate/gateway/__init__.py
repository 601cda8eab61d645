from .dispatcher import API_PATH, Dispatcher
from .envelope import RequestEnvelope, ack, decode_request, nack
from .tables import TableSelection, TableSelector, TableState

__all__ = [
    "API_PATH",
    "Dispatcher",
    "RequestEnvelope",
    "TableSelection",
    "TableSelector",
    "TableState",
    "ack",
    "decode_request",
    "nack",
]
