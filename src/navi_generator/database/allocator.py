"""
Identifier allocation and navi_data shard selection.

Both algorithms read the current maximum and compute the next value. They
are only race-free under a single writer; ``Allocator.lock`` serializes
callers that allocate and insert as one step.
"""
import threading

from navi_generator.database.config_interface import MAX_ROWS_PER_SHARD
from navi_generator.database.repository import WayDataRepository, WayRepository
from navi_generator.database.schema import NAVI_SHARD_PREFIX, SchemaManager, shard_table_ddl, shard_table_name
from navi_generator.database.sqlite_driver import SQLiteDriver
from navi_generator.logger import get_logger

logger = get_logger(__name__)


class ShardRegistry:
    """Shard id to ``navi_data_{id}`` table mapping."""

    def __init__(self, driver: SQLiteDriver) -> None:
        self._driver = driver
        self._schema = SchemaManager(driver)

    @staticmethod
    def table_name(shard_id: int) -> str:
        return shard_table_name(shard_id)

    def exists(self, shard_id: int) -> bool:
        return self._schema.table_exists_by_name(self.table_name(shard_id))

    def create(self, shard_id: int) -> None:
        """Create the shard table if it is missing."""
        self._driver.execute_non_query(shard_table_ddl(shard_id))
        logger.info("Ensured navi shard table %s", self.table_name(shard_id))

    def row_count(self, shard_id: int) -> int:
        """Rows in the shard; a shard that was never created counts as empty."""
        if not self.exists(shard_id):
            return 0
        # table name comes from shard_table_name(), never from caller text
        return int(self._driver.scalar(f"SELECT count(*) FROM {self.table_name(shard_id)}"))  # noqa: S608

    def list_shards(self) -> list[int]:
        """Ids of all existing shard tables, ascending."""
        rows = self._driver.execute_query(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name LIKE ?",
            (f"{NAVI_SHARD_PREFIX}%",),
        )
        shard_ids = []
        for row in rows:
            suffix = row["name"][len(NAVI_SHARD_PREFIX):]
            if suffix.isdigit():
                shard_ids.append(int(suffix))
        return sorted(shard_ids)


class Allocator:
    """Next way id and target shard id."""

    def __init__(
        self,
        driver: SQLiteDriver,
        registry: ShardRegistry | None = None,
        max_rows_per_shard: int = MAX_ROWS_PER_SHARD,
    ) -> None:
        if max_rows_per_shard <= 0:
            raise ValueError(f"max_rows_per_shard must be positive, got {max_rows_per_shard}")
        self._ways = WayRepository(driver)
        self._way_data = WayDataRepository(driver)
        self.registry = registry or ShardRegistry(driver)
        self.max_rows_per_shard = max_rows_per_shard
        self.lock = threading.Lock()

    def next_way_id(self) -> int:
        """1 for an empty way table, otherwise max(way_id) + 1."""
        current_max = self._ways.max_way_id()
        if current_max is None:
            return 1
        return int(current_max) + 1

    def navi_table_shard(self) -> int:
        """
        Shard that should receive new navigation data.

        The shard referenced by the highest ``way_data.navi_table_id`` is kept
        while it holds fewer than ``max_rows_per_shard`` rows; once full the
        next id is returned and the caller creates that shard.
        """
        current = self._way_data.max_navi_table_id()
        cur_max_table_id = 0 if current is None else int(current)
        row_count = self.registry.row_count(cur_max_table_id)
        if row_count < self.max_rows_per_shard:
            return cur_max_table_id
        logger.info(
            "Shard %s holds %d rows (limit %d); selecting shard %d",
            self.registry.table_name(cur_max_table_id),
            row_count,
            self.max_rows_per_shard,
            cur_max_table_id + 1,
        )
        return cur_max_table_id + 1
