"""
mapping/metadata.py
-------------------
Describes how a record type maps onto a table.

Record types are plain dataclasses. The table name comes from the `@table`
decorator (default: the class name); each field's column name comes from
`column(name=...)` (default: the field name); exactly one field must be
declared with `column(key=True)`.

    @table("TblCustomers")
    @dataclass
    class Customer:
        id: Optional[int] = column("CustomerId", key=True)
        name: Optional[str] = column("CustomerName")
        email: Optional[str] = None
"""

import dataclasses
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from db.errors import ConfigurationError
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMN_KEY = "column"
_ID_KEY = "key"


def column(name: Optional[str] = None, *, key: bool = False, default: Any = None, **kwargs) -> Any:
    """
    Declare a mapped dataclass field.

    Args:
        name: Column name override. Defaults to the field name.
        key: Marks the field as the table's identifier.
        default: Field default (ignored when `default_factory` is given).
        **kwargs: Passed through to `dataclasses.field`.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[_COLUMN_KEY] = name
    metadata[_ID_KEY] = key
    if "default_factory" not in kwargs:
        kwargs["default"] = default
    return dataclasses.field(metadata=metadata, **kwargs)


def table(name: str):
    """Class decorator naming the table a record type maps to."""
    def decorator(cls):
        cls.__tablename__ = name
        return cls
    return decorator


@dataclass(frozen=True)
class TableMetadata:
    """
    Immutable mapping of a record type onto a table.

    Attributes:
        table: Table name.
        columns: Field name -> column name, in field declaration order.
        id_field: Name of the identifier field.
        id_column: Column name of the identifier field.
    """
    table: str
    columns: Mapping[str, str]
    id_field: str
    id_column: str

    def column_list(self) -> str:
        return ", ".join(self.columns.values())


def extract_metadata(cls: type) -> TableMetadata:
    """
    Build the TableMetadata of a record type.

    Pure: the same type always yields equal metadata.

    Raises:
        ConfigurationError: If `cls` is not a dataclass or does not declare
            exactly one identifier field.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise ConfigurationError(f"{cls!r} is not a dataclass record type")

    columns: dict[str, str] = {}
    id_fields: list[str] = []
    for f in dataclasses.fields(cls):
        columns[f.name] = f.metadata.get(_COLUMN_KEY) or f.name
        if f.metadata.get(_ID_KEY):
            id_fields.append(f.name)

    if not id_fields:
        raise ConfigurationError(f"You must declare a key field for class {cls.__name__}")
    if len(id_fields) > 1:
        raise ConfigurationError(
            f"Class {cls.__name__} declares several key fields: {', '.join(id_fields)}"
        )

    id_field = id_fields[0]
    return TableMetadata(
        table=getattr(cls, "__tablename__", None) or cls.__name__,
        columns=MappingProxyType(columns),
        id_field=id_field,
        id_column=columns[id_field],
    )


_cache: dict[type, TableMetadata] = {}
_cache_lock = threading.Lock()


def get_metadata(cls: type) -> TableMetadata:
    """Return the cached TableMetadata of `cls`, extracting it on first use."""
    meta = _cache.get(cls)
    if meta is not None:
        return meta
    with _cache_lock:
        meta = _cache.get(cls)
        if meta is None:
            meta = extract_metadata(cls)
            _cache[cls] = meta
            logger.debug(f"Mapped {cls.__name__} to table {meta.table}")
        return meta
