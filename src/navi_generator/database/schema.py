"""
Schema definitions for the navigation database.

The schema is fixed: five tables selected by ``TableName``. Table names
reach SQL text only through this module's constants, never from callers.
"""
from enum import IntEnum

from navi_generator.database.sqlite_driver import DBSchemaError, SQLiteDriver
from navi_generator.logger import get_logger

logger = get_logger(__name__)


class TableName(IntEnum):
    """Logical tables, in creation order."""

    SPEED_LIMIT = 0
    WAY = 1
    WAY_NODES = 2
    WAY_DATA = 3
    NAVI_DATA = 4

    @property
    def sql_name(self) -> str:
        return TABLE_NAMES[self]


TABLE_NAMES: dict[TableName, str] = {
    TableName.SPEED_LIMIT: "speed_limit",
    TableName.WAY: "way",
    TableName.WAY_NODES: "way_nodes",
    TableName.WAY_DATA: "way_data",
    TableName.NAVI_DATA: "navi_data",
}

# Prefix of the navi_data shard tables (navi_data_0, navi_data_1, ...)
NAVI_SHARD_PREFIX = "navi_data_"

_NAVI_DATA_COLUMNS = """
    way_id INTEGER NOT NULL REFERENCES way(way_id) ON UPDATE CASCADE ON DELETE CASCADE,
    navi_index INTEGER NOT NULL CHECK (navi_index BETWEEN 0 AND 255),
    data BLOB,
    UNIQUE(way_id, navi_index)
"""

TABLE_DDL: dict[TableName, tuple[str, ...]] = {
    TableName.SPEED_LIMIT: (
        """CREATE TABLE speed_limit (
            id INTEGER PRIMARY KEY,
            speed INTEGER NOT NULL
        )""",
    ),
    TableName.WAY: (
        # pre/next links are plain columns: a successor may be saved after its predecessor
        """CREATE TABLE way (
            way_id INTEGER PRIMARY KEY,
            pre_way_id INTEGER,
            next_way_id INTEGER,
            speed_min INTEGER REFERENCES speed_limit(id) ON UPDATE CASCADE,
            speed_max INTEGER REFERENCES speed_limit(id) ON UPDATE CASCADE
        )""",
    ),
    TableName.WAY_NODES: (
        """CREATE TABLE way_nodes (
            way_id INTEGER NOT NULL REFERENCES way(way_id) ON UPDATE CASCADE ON DELETE CASCADE,
            node_index INTEGER NOT NULL,
            data_line_number INTEGER NOT NULL,
            node_value TEXT,
            UNIQUE(way_id, node_index)
        )""",
    ),
    TableName.WAY_DATA: (
        """CREATE TABLE way_data (
            way_id INTEGER PRIMARY KEY REFERENCES way(way_id) ON UPDATE CASCADE ON DELETE CASCADE,
            raw_data BLOB,
            navi_number INTEGER NOT NULL DEFAULT 0 CHECK (navi_number BETWEEN 0 AND 255),
            navi_table_id INTEGER NOT NULL DEFAULT 0
        )""",
        "CREATE INDEX idx_way_data_navi_table_id ON way_data(navi_table_id)",
    ),
    TableName.NAVI_DATA: (
        f"CREATE TABLE navi_data ({_NAVI_DATA_COLUMNS})",
    ),
}


def resolve_table(table: TableName | int) -> TableName:
    """Map a table selector to ``TableName``; reject anything outside the fixed set."""
    if isinstance(table, bool) or not isinstance(table, int):
        raise DBSchemaError(f"Invalid table selector: {table!r}")
    try:
        return TableName(table)
    except ValueError:
        raise DBSchemaError(  # noqa: B904
            f"Table index {table} is not less than the number of tables ({len(TableName)})"
        )


def shard_table_name(shard_id: int) -> str:
    """SQL name of a navi_data shard table."""
    if isinstance(shard_id, bool) or not isinstance(shard_id, int) or shard_id < 0:
        raise DBSchemaError(f"Invalid navi shard id: {shard_id!r}")
    return f"{NAVI_SHARD_PREFIX}{shard_id}"


def shard_table_ddl(shard_id: int) -> str:
    """CREATE TABLE statement of a shard; same column layout as navi_data."""
    return f"CREATE TABLE IF NOT EXISTS {shard_table_name(shard_id)} ({_NAVI_DATA_COLUMNS})"


class SchemaManager:
    """Existence checks and creation of the fixed tables."""

    def __init__(self, driver: SQLiteDriver) -> None:
        self._driver = driver

    def table_exists_by_name(self, name: str) -> bool:
        count = self._driver.scalar(
            "SELECT count(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
            (name,),
        )
        return bool(count)

    def table_exists(self, table: TableName | int) -> bool:
        """
        Return whether the given table is present in the database.

        :raises DBSchemaError: If the selector is outside the fixed table set.
        :raises DBError: If the catalog query fails.
        """
        return self.table_exists_by_name(resolve_table(table).sql_name)

    def create_table(self, table: TableName | int) -> None:
        """
        Create one table (and its indexes) in a single transaction.

        :raises DBSchemaError: If the selector is outside the fixed table set.
        :raises DBError: If any DDL statement fails.
        """
        table = resolve_table(table)
        with self._driver.transaction():
            for statement in TABLE_DDL[table]:
                self._driver.execute_non_query(statement)
        logger.debug("Created table %s", table.sql_name)

    def existing_tables(self) -> list[str]:
        """Names of all user tables, sorted."""
        rows = self._driver.execute_query(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row["name"] for row in rows]
