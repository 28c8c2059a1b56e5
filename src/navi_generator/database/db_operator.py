"""
Database operator: the API the generation pipeline uses to persist ways,
their nodes, raw data and navigation payloads.

Every public storage operation reports its outcome instead of raising:
writes return ``True``/``False``, queries return the record or ``None``
(no row, or a logged storage failure). Programmer errors such as an update
whose aggregate targets another way raise ``ValueError``.

Usage:
    with DBOperator(Path("navi.sqlite")) as db:
        db.init_database()
        way_id = db.create_new_way_id()
        db.save_way(Way(way_id=way_id, speed_min=1, speed_max=3))
"""
import functools
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

from navi_generator.data_models import NaviData, NaviInfo, SpeedLimit, Way, WayData, WayNodes, default_speed_limits
from navi_generator.database.allocator import Allocator, ShardRegistry
from navi_generator.database.config_interface import DatabaseConfig
from navi_generator.database.repository import (
    NaviDataRepository,
    SpeedLimitRepository,
    WayDataRepository,
    WayNodesRepository,
    WayRepository,
)
from navi_generator.database.schema import SchemaManager, TableName, resolve_table
from navi_generator.database.sqlite_driver import DBError, SQLiteDriver
from navi_generator.logger import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _storage_operation(default: Any) -> Callable[[F], F]:
    """Serialize on the operator lock and turn ``DBError`` into ``default``."""

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self: "DBOperator", *args: Any, **kwargs: Any) -> Any:
            with self._lock:
                try:
                    return method(self, *args, **kwargs)
                except DBError as e:
                    logger.error(
                        "%s failed: %s (driver: %s)",
                        method.__name__,
                        e,
                        self._driver.last_error_message,
                    )
                    return default

        return wrapper  # type: ignore[return-value]

    return decorator


class DBOperator:
    """Owns one connection to the navigation database and the operations on it."""

    def __init__(
        self,
        db_path: Path | str | None = None,
        config: DatabaseConfig | None = None,
    ) -> None:
        self._config = config or DatabaseConfig()
        self._db_path = Path(db_path) if db_path is not None else self._config.database_path
        self._lock = threading.RLock()
        self._driver = SQLiteDriver(busy_timeout_s=self._config.busy_timeout_s)
        self._schema = SchemaManager(self._driver)
        self._speed_limits = SpeedLimitRepository(self._driver)
        self._ways = WayRepository(self._driver)
        self._way_nodes = WayNodesRepository(self._driver)
        self._way_data = WayDataRepository(self._driver)
        self._navi_data = NaviDataRepository(self._driver)
        self._shards = ShardRegistry(self._driver)
        self._allocator = Allocator(
            self._driver,
            registry=self._shards,
            max_rows_per_shard=self._config.max_rows_per_shard,
        )

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._driver.is_open

    @property
    def last_error_message(self) -> str:
        return self._driver.last_error_message

    # Lifecycle

    def open(self) -> bool:
        """Open the database file (created if missing)."""
        with self._lock:
            existed = self._db_path.exists()
            try:
                self._driver.open(self._db_path)
            except DBError as e:
                logger.error("Cannot open navigation database: %s", e)
                return False
            if existed:
                logger.info("Connected to existing database: %s", self._db_path)
            else:
                logger.info("Database did not exist. Created new database at: %s", self._db_path)
            return True

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._driver.close()

    def __enter__(self) -> "DBOperator":
        if not self.open():
            raise DBError(f"Cannot open database {self._db_path}: {self._driver.last_error_message}")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # Schema

    @_storage_operation(default=False)
    def table_exists(self, table: TableName | int) -> bool:
        """Return whether one of the fixed tables exists."""
        return self._schema.table_exists(table)

    @_storage_operation(default=False)
    def create_table(self, table: TableName | int) -> bool:
        """Create one of the fixed tables."""
        self._schema.create_table(table)
        logger.info("Created table %s", resolve_table(table).sql_name)
        return True

    @_storage_operation(default=False)
    def init_database(self) -> bool:
        """
        Create the five tables and seed ``speed_limit``.

        Fast path: an existing ``way`` table means the schema is in place.
        Otherwise every table is created in order and the seed inserted, all
        in one transaction, so a failure leaves no partial schema behind.
        """
        if self._schema.table_exists(TableName.WAY):
            logger.debug("Schema already present in %s", self._db_path)
            return True
        with self._driver.transaction(immediate=True):
            for table in TableName:
                self._schema.create_table(table)
            self._speed_limits.save_all(default_speed_limits())
        logger.info("Initialized navigation database schema in %s", self._db_path)
        return True

    @_storage_operation(default=False)
    def fill_table_speed_limit(self) -> bool:
        """Insert the 13 seed speed limits in one transaction."""
        self._speed_limits.save_all(default_speed_limits())
        return True

    @_storage_operation(default=False)
    def create_navi_shard(self, shard_id: int) -> bool:
        """Create the ``navi_data_{shard_id}`` table if missing."""
        self._shards.create(shard_id)
        return True

    @_storage_operation(default=None)
    def table_row_counts(self) -> dict[str, int] | None:
        """Row counts of the fixed tables and every shard table that exists."""
        counts: dict[str, int] = {}
        existing = set(self._schema.existing_tables())
        for table in TableName:
            if table.sql_name in existing:
                counts[table.sql_name] = int(
                    self._driver.scalar(f"SELECT count(*) FROM {table.sql_name}")  # noqa: S608
                )
        for shard_id in self._shards.list_shards():
            counts[self._shards.table_name(shard_id)] = self._shards.row_count(shard_id)
        return counts

    # Save

    @_storage_operation(default=False)
    def save_way(self, way: Way) -> bool:
        self._ways.insert(way)
        return True

    @_storage_operation(default=False)
    def save_way_nodes(self, way_nodes: WayNodes) -> bool:
        """Insert all nodes of a way; nothing is kept if any row fails."""
        self._way_nodes.insert(way_nodes)
        return True

    @_storage_operation(default=False)
    def save_way_data(self, way_data: WayData) -> bool:
        self._way_data.insert(way_data)
        return True

    @_storage_operation(default=False)
    def save_navi_data(self, navi_info: NaviInfo) -> bool:
        """Insert all navigation entries of a way; nothing is kept if any row fails."""
        self._navi_data.insert(navi_info)
        return True

    @_storage_operation(default=None)
    def save_new_way(
        self,
        pre_way_id: int | None = None,
        next_way_id: int | None = None,
        speed_min: int | None = None,
        speed_max: int | None = None,
    ) -> Way | None:
        """Allocate the next way id and insert the way as one serialized step."""
        with self._allocator.lock, self._driver.transaction(immediate=True):
            way = Way(
                way_id=self._allocator.next_way_id(),
                pre_way_id=pre_way_id,
                next_way_id=next_way_id,
                speed_min=speed_min,
                speed_max=speed_max,
            )
            self._ways.insert(way)
        return way

    # Query

    @_storage_operation(default=None)
    def query_way(self, way_id: int) -> Way | None:
        return self._ways.get(way_id)

    @_storage_operation(default=None)
    def query_way_nodes(self, way_id: int) -> WayNodes | None:
        return self._way_nodes.get(way_id)

    @_storage_operation(default=None)
    def query_way_data(self, way_id: int) -> WayData | None:
        return self._way_data.get(way_id)

    @_storage_operation(default=None)
    def query_navi_data(self, way_id: int) -> NaviInfo | None:
        return self._navi_data.get(way_id)

    @_storage_operation(default=None)
    def query_navi_data_entry(self, way_id: int, navi_index: int) -> NaviData | None:
        return self._navi_data.get_entry(way_id, navi_index)

    @_storage_operation(default=None)
    def query_speed_limits(self) -> list[SpeedLimit] | None:
        return self._speed_limits.list_all()

    # Update

    @_storage_operation(default=False)
    def update_way(self, way_id: int, way: Way) -> bool:
        """Overwrite the way row; a different ``way.way_id`` renumbers it and its dependents."""
        if self._ways.update(way_id, way) == 0:
            logger.warning("update_way: no way with id %d", way_id)
        return True

    @_storage_operation(default=False)
    def update_way_speed_limit(self, way_id: int, speed_min: int | None, speed_max: int | None) -> bool:
        if self._ways.update_speed_limit(way_id, speed_min, speed_max) == 0:
            logger.warning("update_way_speed_limit: no way with id %d", way_id)
        return True

    @_storage_operation(default=False)
    def update_way_nodes(self, way_id: int, way_nodes: WayNodes) -> bool:
        """Replace the node list of ``way_id`` with ``way_nodes``."""
        _check_same_way(way_id, way_nodes.way_id)
        with self._driver.transaction():
            self._way_nodes.delete(way_id)
            self._way_nodes.insert(way_nodes)
        return True

    @_storage_operation(default=False)
    def update_way_data(self, way_id: int, way_data: WayData) -> bool:
        _check_same_way(way_id, way_data.way_id)
        if self._way_data.update(way_id, way_data) == 0:
            logger.warning("update_way_data: no way data for way %d", way_id)
        return True

    @_storage_operation(default=False)
    def update_navi_data(self, way_id: int, navi_info: NaviInfo) -> bool:
        """Replace the navigation entries of ``way_id`` with ``navi_info``."""
        _check_same_way(way_id, navi_info.way_id)
        with self._driver.transaction():
            self._navi_data.delete(way_id)
            self._navi_data.insert(navi_info)
        return True

    # Delete

    @_storage_operation(default=False)
    def delete_way(self, way_id: int) -> bool:
        """
        Delete a way and its nodes, raw data and navigation entries.

        The dependents are deleted explicitly (nodes, data, navi entries) before
        the way row, independent of the schema's ON DELETE CASCADE. The steps
        are not one transaction: a failure stops the sequence and earlier
        deletions stay applied.
        """
        self._way_nodes.delete(way_id)
        self._way_data.delete(way_id)
        self._navi_data.delete(way_id)
        self._ways.delete(way_id)
        logger.debug("Deleted way %d with dependents", way_id)
        return True

    @_storage_operation(default=False)
    def delete_way_nodes(self, way_id: int) -> bool:
        self._way_nodes.delete(way_id)
        return True

    @_storage_operation(default=False)
    def delete_way_data(self, way_id: int) -> bool:
        self._way_data.delete(way_id)
        return True

    @_storage_operation(default=False)
    def delete_navi_data(self, way_id: int) -> bool:
        self._navi_data.delete(way_id)
        return True

    # Allocation

    @_storage_operation(default=None)
    def create_new_way_id(self) -> int | None:
        """Next unused way id (unique only while a single writer allocates)."""
        with self._allocator.lock:
            return self._allocator.next_way_id()

    @_storage_operation(default=None)
    def get_navi_table_id(self) -> int | None:
        """Shard id that should receive new navigation data."""
        with self._allocator.lock:
            return self._allocator.navi_table_shard()


def _check_same_way(way_id: int, aggregate_way_id: int) -> None:
    if way_id != aggregate_way_id:
        raise ValueError(f"Aggregate belongs to way {aggregate_way_id}, not way {way_id}")
