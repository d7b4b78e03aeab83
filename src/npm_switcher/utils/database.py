"""SQLite database utilities for Pydantic models.

This module provides the small set of row operations the proxy record store
needs, using Pydantic models for serialization/deserialization.

Note:
    Fields with ``None`` values are excluded from UPDATE statements via
    ``exclude_none=True``. An update model whose optional column is ``None``
    therefore leaves that column untouched.
"""

from __future__ import annotations

import re
import sqlite3
from typing import TYPE_CHECKING, Literal, TypeAlias, TypeVar, cast

from pydantic import BaseModel

if TYPE_CHECKING:
    from pathlib import Path

# Valid SQL identifier pattern (alphanumeric and underscores, not starting with digit)
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# SQLite-compatible value types
SQLValue: TypeAlias = "str | int | float | bytes | None"

# SQLite transaction isolation levels
IsolationLevel: TypeAlias = 'Literal["DEFERRED", "EXCLUSIVE", "IMMEDIATE"] | None'

T = TypeVar("T", bound=BaseModel)


def open_connection(
    path: str | Path,
    *,
    timeout: float = 30.0,
    isolation_level: IsolationLevel = "DEFERRED",
    check_same_thread: bool = True,
    uri: bool = False,
) -> sqlite3.Connection:
    """Open a long-lived SQLite connection.

    The journal mode of the database is left as it is; the file belongs to
    the proxy manager and is shared with it.

    Args:
        path: Database file path, or ``:memory:`` for in-memory database.
        timeout: Seconds to wait for lock before raising OperationalError.
        isolation_level: Transaction isolation level.
        check_same_thread: If True, only the creating thread may use the connection.
        uri: If True, interpret path as a URI.

    Returns:
        SQLite connection with row_factory set to sqlite3.Row.

    Raises:
        sqlite3.OperationalError: If the database cannot be opened.
    """
    conn = sqlite3.connect(
        str(path),
        timeout=timeout,
        isolation_level=isolation_level,
        check_same_thread=check_same_thread,
        uri=uri,
    )
    conn.row_factory = sqlite3.Row
    return conn


def safe_identifier(name: str) -> str:
    """Validate and quote a SQL identifier.

    Validates that the identifier contains only safe characters (letters,
    digits, underscores), then quotes it to handle SQL reserved words.

    Args:
        name: The identifier to validate and quote.

    Returns:
        The quoted identifier (e.g., ``"proxy_host"``).

    Raises:
        ValueError: If the identifier contains invalid characters.

    Examples:
        >>> safe_identifier("proxy_host")
        '"proxy_host"'
        >>> safe_identifier("123abc")
        Traceback (most recent call last):
            ...
        ValueError: Invalid SQL identifier: '123abc'
    """
    if not _IDENTIFIER_RE.match(name):
        msg = f"Invalid SQL identifier: {name!r}"
        raise ValueError(msg)
    return f'"{name}"'


def fetch_all(
    conn: sqlite3.Connection,
    model: type[T],
    sql: str,
    params: tuple[SQLValue, ...] = (),
) -> list[T]:
    """Fetch all rows and return them as Pydantic models.

    Args:
        conn: SQLite connection.
        model: Pydantic model class to deserialize into.
        sql: SQL query string.
        params: Query parameters.

    Returns:
        List of model instances (empty if no rows).
    """
    rows = cast("list[sqlite3.Row]", conn.execute(sql, params).fetchall())
    return [model.model_validate(dict(row)) for row in rows]


def update(  # noqa: PLR0913
    conn: sqlite3.Connection,
    table: str,
    obj: BaseModel,
    key_column: str = "id",
    exclude: set[str] | None = None,
    *,
    commit: bool = True,
) -> int:
    """Update a row in a table.

    Args:
        conn: SQLite connection.
        table: Table name.
        obj: Pydantic model with updated values.
        key_column: Column name to use for the WHERE clause (default "id").
        exclude: Additional field names to exclude from the update.
        commit: Whether to commit the transaction (default True).

    Returns:
        Number of rows affected.

    Raises:
        AttributeError: If the model lacks the key_column attribute.

    Examples:
        >>> class ForwardUpdate(BaseModel):
        ...     id: int
        ...     forward_host: str
        ...     forward_port: int
        >>> row = ForwardUpdate(id=1, forward_host="10.0.0.2", forward_port=80)
        >>> update(conn, "proxy_host", row)
        1
    """
    safe_table = safe_identifier(table)
    safe_key_col = safe_identifier(key_column)
    exclude = (exclude or set()) | {key_column}
    data = obj.model_dump(exclude=exclude, exclude_none=True)
    key_value = cast("SQLValue", getattr(obj, key_column))

    sets = ", ".join(f"{safe_identifier(k)} = :{k}" for k in data)
    data[key_column] = key_value

    cursor = conn.execute(
        f"UPDATE {safe_table} SET {sets} WHERE {safe_key_col} = :{key_column}",  # noqa: S608
        data,
    )
    if commit:
        conn.commit()
    return cursor.rowcount
