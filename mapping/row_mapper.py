"""
mapping/row_mapper.py
---------------------
Materializes result-set rows into record instances.
"""

import dataclasses
from typing import Any, Mapping, Sequence, TypeVar

from mapping.metadata import TableMetadata

T = TypeVar("T")


def row_to_mapping(cursor, row: Sequence[Any]) -> dict[str, Any]:
    """Pair a DB-API row tuple with the column names of `cursor.description`."""
    columns = [d[0] for d in cursor.description]
    return dict(zip(columns, row))


def _default_for(f: dataclasses.Field) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    return None


def map_row(row: Mapping[str, Any], meta: TableMetadata, cls: type[T]) -> T:
    """
    Build an instance of `cls` from a column-name -> value mapping.

    Column lookup ignores case. A NULL (None) value is replaced by the field's
    declared default, or None when it has none. Other values are assigned as
    returned by the driver.
    """
    values = {str(k).lower(): v for k, v in row.items()}

    init_kwargs: dict[str, Any] = {}
    late: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        value = values[meta.columns[f.name].lower()]
        if value is None:
            value = _default_for(f)
        if f.init:
            init_kwargs[f.name] = value
        else:
            late[f.name] = value

    instance = cls(**init_kwargs)
    for name, value in late.items():
        object.__setattr__(instance, name, value)
    return instance
