from .base import AdapterError, FetchError, MessagingAdapter, SendError, StreamError
from .mock import MockAdapter
from .webex import WebexAdapter

__all__ = [
    "AdapterError",
    "FetchError",
    "MessagingAdapter",
    "MockAdapter",
    "SendError",
    "StreamError",
    "WebexAdapter",
]
