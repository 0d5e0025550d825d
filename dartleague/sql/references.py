"""
Generic row operations on tables that reference players, used when merging player records.

Table and column names are looked up in the SQLAlchemy metadata, so only declared tables and
columns can be touched.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import Column, Table, and_, func, select

from dartleague.database import database
from dartleague.exceptions import translate_store_errors
from dartleague.schema import metadata

RowKey = dict[str, Any]


def get_table(table_name: str) -> Table:
    table = metadata.tables.get(table_name)
    if table is None:
        raise ValueError(f"Unknown table: {table_name}")
    return table


def get_column(table: Table, column_name: str) -> Column[Any]:
    if column_name not in table.c:
        raise ValueError(f"Unknown column: {table.name}.{column_name}")
    return table.c[column_name]


def get_row_key(table_name: str, row: Mapping[str, Any]) -> RowKey:
    """Primary key values of a row; composite for tables without a surrogate id."""
    table = get_table(table_name)
    return {column.name: row[column.name] for column in table.primary_key.columns}


def _where(table: Table, filter_: Mapping[str, Any]) -> Any:
    return and_(*(get_column(table, column) == value for column, value in filter_.items()))


async def list_referencing_rows(
    table_name: str, player_column: str, player_id: str
) -> list[dict[str, Any]]:
    table = get_table(table_name)
    query = select(table).where(get_column(table, player_column) == player_id)
    async with translate_store_errors("list referencing rows", table=table_name, record_id=player_id):
        rows = await database.fetch_all(query)
    return [dict(row._mapping) for row in rows]


async def row_exists(table_name: str, filter_: Mapping[str, Any]) -> bool:
    table = get_table(table_name)
    query = select(func.count()).select_from(table).where(_where(table, filter_))
    async with translate_store_errors("check row exists", table=table_name):
        count = await database.fetch_val(query)
    return int(count or 0) > 0


async def update_column(table_name: str, row_key: RowKey, column: str, value: Any) -> None:
    table = get_table(table_name)
    query = table.update().where(_where(table, row_key)).values({get_column(table, column): value})
    async with translate_store_errors("update column", table=table_name, record_id=str(row_key)):
        await database.execute(query)


async def update_references(table_name: str, column: str, source_id: str, target_id: str) -> int:
    table = get_table(table_name)
    reference_column = get_column(table, column)
    key_column = next(iter(table.primary_key.columns))
    query = (
        table.update()
        .where(reference_column == source_id)
        .values({reference_column: target_id})
        .returning(key_column)
    )
    async with translate_store_errors("update references", table=table_name, record_id=source_id):
        rows = await database.fetch_all(query)
    return len(rows)


async def delete_row(table_name: str, row_key: RowKey) -> None:
    table = get_table(table_name)
    async with translate_store_errors("delete row", table=table_name, record_id=str(row_key)):
        await database.execute(table.delete().where(_where(table, row_key)))


async def insert_row(table_name: str, values: Mapping[str, Any]) -> None:
    table = get_table(table_name)
    for column in values:
        get_column(table, column)
    async with translate_store_errors("insert row", table=table_name):
        await database.execute(table.insert().values(dict(values)))
