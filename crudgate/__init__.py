from .app import create_app
from .config import DbConfig, GatewayConfig, LogConfig
from .db.executor import CrudExecutor
from .gateway.dispatcher import Dispatcher
from .logship.forwarder import LogForwarder

__all__ = [
    "create_app",
    "GatewayConfig",
    "DbConfig",
    "LogConfig",
    "CrudExecutor",
    "Dispatcher",
    "LogForwarder",
]
