from .forwarder import LogForwarder

__all__ = ["LogForwarder"]
