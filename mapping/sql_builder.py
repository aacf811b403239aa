"""
mapping/sql_builder.py
----------------------
Generates parameterized single-table SQL from TableMetadata.

Every value, identifiers included, is bound through the driver's parameter
marker; no value is ever rendered into the SQL text. INSERT and UPDATE only
write fields whose value is not None (sparse writes) and never write the
identifier column.
"""

from typing import Any, NamedTuple, Optional

from mapping.metadata import TableMetadata


class Statement(NamedTuple):
    """SQL text plus its bound parameter values, in placeholder order."""
    sql: str
    params: tuple = ()


def writable_values(meta: TableMetadata, entity: Any) -> list[tuple[str, Any]]:
    """
    (column, value) pairs written by INSERT/UPDATE for `entity`.

    Skips the identifier column and every field whose value is None.
    """
    pairs = []
    for field_name, column_name in meta.columns.items():
        if column_name == meta.id_column:
            continue
        value = getattr(entity, field_name)
        if value is not None:
            pairs.append((column_name, value))
    return pairs


def build_select_all(meta: TableMetadata) -> Statement:
    return Statement(f"SELECT {meta.column_list()} FROM {meta.table}")


def build_select_by_id(meta: TableMetadata, id_value: Any, placeholder: str) -> Statement:
    sql = f"SELECT {meta.column_list()} FROM {meta.table} WHERE {meta.id_column} = {placeholder}"
    return Statement(sql, (id_value,))


def build_insert(meta: TableMetadata, entity: Any, placeholder: str) -> Statement:
    """
    INSERT for the non-None, non-identifier fields of `entity`.

    Falls back to ``INSERT ... DEFAULT VALUES`` when no field is set.
    """
    pairs = writable_values(meta, entity)
    if not pairs:
        return Statement(f"INSERT INTO {meta.table} DEFAULT VALUES")
    columns = ", ".join(c for c, _ in pairs)
    markers = ", ".join(placeholder for _ in pairs)
    return Statement(
        f"INSERT INTO {meta.table} ({columns}) VALUES ({markers})",
        tuple(v for _, v in pairs),
    )


def build_update(
    meta: TableMetadata, id_value: Any, entity: Any, placeholder: str
) -> Optional[Statement]:
    """
    Sparse UPDATE of the row identified by `id_value`.

    Returns:
        The statement, or None when `entity` has no field to write.
    """
    pairs = writable_values(meta, entity)
    if not pairs:
        return None
    assignments = ", ".join(f"{c} = {placeholder}" for c, _ in pairs)
    return Statement(
        f"UPDATE {meta.table} SET {assignments} WHERE {meta.id_column} = {placeholder}",
        tuple(v for _, v in pairs) + (id_value,),
    )


def build_delete(meta: TableMetadata, id_value: Any, placeholder: str) -> Statement:
    return Statement(
        f"DELETE FROM {meta.table} WHERE {meta.id_column} = {placeholder}",
        (id_value,),
    )
