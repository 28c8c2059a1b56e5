"""
Per-record SQL mapping for the navigation database.

Each repository translates one record type to and from parameterized
statements. Errors propagate as ``DBError``; reporting them is the job of
``DBOperator``. Multi-row saves run inside one transaction so a failing row
rolls the whole aggregate back.
"""
from typing import Sequence

from navi_generator.data_models import NaviData, NaviInfo, Node, SpeedLimit, Way, WayData, WayNodes
from navi_generator.database.sqlite_driver import SQLiteDriver
from navi_generator.logger import get_logger

logger = get_logger(__name__)


class _Repository:
    def __init__(self, driver: SQLiteDriver) -> None:
        self._driver = driver


class SpeedLimitRepository(_Repository):
    """The immutable speed_limit reference table."""

    def save_all(self, speed_limits: Sequence[SpeedLimit]) -> None:
        """Insert the batch atomically."""
        with self._driver.transaction():
            for speed_limit in speed_limits:
                self._driver.execute_non_query(
                    "INSERT INTO speed_limit (id, speed) VALUES (?, ?)",
                    (speed_limit.id, speed_limit.speed),
                )
        logger.debug("Saved %d speed limits", len(speed_limits))

    def list_all(self) -> list[SpeedLimit]:
        rows = self._driver.execute_query("SELECT id, speed FROM speed_limit ORDER BY id")
        return [SpeedLimit.model_validate(dict(row)) for row in rows]


class WayRepository(_Repository):
    """Rows of the way table. ``None`` links are stored as SQL NULL."""

    def insert(self, way: Way) -> None:
        self._driver.execute_non_query(
            """INSERT INTO way (way_id, pre_way_id, next_way_id, speed_min, speed_max)
            VALUES (?, ?, ?, ?, ?)""",
            (way.way_id, way.pre_way_id, way.next_way_id, way.speed_min, way.speed_max),
        )
        logger.debug("Saved way %d", way.way_id)

    def get(self, way_id: int) -> Way | None:
        rows = self._driver.execute_query(
            """SELECT way_id, pre_way_id, next_way_id, speed_min, speed_max
            FROM way WHERE way_id = ?""",
            (way_id,),
        )
        return Way.model_validate(dict(rows[0])) if rows else None

    def update(self, way_id: int, way: Way) -> int:
        """Overwrite the row of ``way_id`` with ``way``.

        A different ``way.way_id`` renumbers the way; dependents follow through ON UPDATE CASCADE.
        """
        return self._driver.execute_non_query(
            """UPDATE way SET way_id = ?, pre_way_id = ?, next_way_id = ?, speed_min = ?, speed_max = ?
            WHERE way_id = ?""",
            (way.way_id, way.pre_way_id, way.next_way_id, way.speed_min, way.speed_max, way_id),
        )

    def update_speed_limit(self, way_id: int, speed_min: int | None, speed_max: int | None) -> int:
        return self._driver.execute_non_query(
            "UPDATE way SET speed_min = ?, speed_max = ? WHERE way_id = ?",
            (speed_min or None, speed_max or None, way_id),
        )

    def delete(self, way_id: int) -> int:
        return self._driver.execute_non_query("DELETE FROM way WHERE way_id = ?", (way_id,))

    def max_way_id(self) -> int | None:
        return self._driver.scalar("SELECT max(way_id) FROM way")


class WayNodesRepository(_Repository):
    """Node rows of a way, kept in insertion order."""

    def insert(self, way_nodes: WayNodes) -> None:
        """Insert every node of the aggregate atomically."""
        with self._driver.transaction():
            for node in way_nodes.nodes:
                self._driver.execute_non_query(
                    """INSERT INTO way_nodes (way_id, node_index, data_line_number, node_value)
                    VALUES (?, ?, ?, ?)""",
                    (way_nodes.way_id, node.node_index, node.data_line_number, node.node_value),
                )
        logger.debug("Saved %d nodes of way %d", len(way_nodes.nodes), way_nodes.way_id)

    def get(self, way_id: int) -> WayNodes | None:
        rows = self._driver.execute_query(
            """SELECT node_index, data_line_number, node_value
            FROM way_nodes WHERE way_id = ? ORDER BY rowid""",
            (way_id,),
        )
        if not rows:
            return None
        return WayNodes(way_id=way_id, nodes=[Node.model_validate(dict(row)) for row in rows])

    def delete(self, way_id: int) -> int:
        return self._driver.execute_non_query("DELETE FROM way_nodes WHERE way_id = ?", (way_id,))


class WayDataRepository(_Repository):
    """The single raw-data row of a way."""

    def insert(self, way_data: WayData) -> None:
        self._driver.execute_non_query(
            """INSERT INTO way_data (way_id, raw_data, navi_number, navi_table_id)
            VALUES (?, ?, ?, ?)""",
            (way_data.way_id, way_data.raw_data, way_data.navi_number, way_data.navi_table_id),
        )
        logger.debug("Saved way data of way %d (%d bytes)", way_data.way_id, len(way_data.raw_data))

    def get(self, way_id: int) -> WayData | None:
        rows = self._driver.execute_query(
            """SELECT way_id, raw_data, navi_number, navi_table_id
            FROM way_data WHERE way_id = ?""",
            (way_id,),
        )
        if not rows:
            return None
        row = dict(rows[0])
        # NULL blob reads back as empty payload
        row["raw_data"] = bytes(row["raw_data"] or b"")
        return WayData.model_validate(row)

    def update(self, way_id: int, way_data: WayData) -> int:
        return self._driver.execute_non_query(
            """UPDATE way_data SET raw_data = ?, navi_number = ?, navi_table_id = ?
            WHERE way_id = ?""",
            (way_data.raw_data, way_data.navi_number, way_data.navi_table_id, way_id),
        )

    def delete(self, way_id: int) -> int:
        return self._driver.execute_non_query("DELETE FROM way_data WHERE way_id = ?", (way_id,))

    def max_navi_table_id(self) -> int | None:
        return self._driver.scalar("SELECT max(navi_table_id) FROM way_data")


class NaviDataRepository(_Repository):
    """Navigation entries of a way, kept in insertion order."""

    def insert(self, navi_info: NaviInfo) -> None:
        """Insert every entry of the aggregate atomically."""
        with self._driver.transaction():
            for entry in navi_info.navi_data:
                self._driver.execute_non_query(
                    "INSERT INTO navi_data (way_id, navi_index, data) VALUES (?, ?, ?)",
                    (navi_info.way_id, entry.navi_index, entry.data),
                )
        logger.debug("Saved %d navi entries of way %d", len(navi_info.navi_data), navi_info.way_id)

    def get(self, way_id: int) -> NaviInfo | None:
        rows = self._driver.execute_query(
            "SELECT navi_index, data FROM navi_data WHERE way_id = ? ORDER BY rowid",
            (way_id,),
        )
        if not rows:
            return None
        return NaviInfo(way_id=way_id, navi_data=[self._to_navi_data(row) for row in rows])

    def get_entry(self, way_id: int, navi_index: int) -> NaviData | None:
        rows = self._driver.execute_query(
            "SELECT navi_index, data FROM navi_data WHERE way_id = ? AND navi_index = ?",
            (way_id, navi_index),
        )
        return self._to_navi_data(rows[0]) if rows else None

    def delete(self, way_id: int) -> int:
        return self._driver.execute_non_query("DELETE FROM navi_data WHERE way_id = ?", (way_id,))

    @staticmethod
    def _to_navi_data(row) -> NaviData:
        return NaviData(navi_index=row["navi_index"], data=bytes(row["data"] or b""))
