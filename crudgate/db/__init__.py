from .builder import BuiltStatement, build_statement
from .executor import CrudExecutor
from .models import CrudAction, CrudOperation
from .schema import SchemaRegistry, validate_identifier
from .session import DbSession

__all__ = [
    "DbSession",
    "CrudAction",
    "CrudOperation",
    "CrudExecutor",
    "SchemaRegistry",
    "BuiltStatement",
    "build_statement",
    "validate_identifier",
]
