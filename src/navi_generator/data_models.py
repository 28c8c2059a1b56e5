"""
Record models for the navigation database.

A ``Way`` is the aggregation root; ``WayNodes``, ``WayData`` and ``NaviInfo``
hang off it by ``way_id``. Optional links (predecessor, successor, speed
range) are ``None`` when absent. The legacy sentinel ``0`` is still accepted
on input and normalised to ``None`` so callers porting old data keep working.
"""
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# SQLite stores INTEGER as signed 64-bit.
SQLITE_MAX_INTEGER = 2**63 - 1

WayId = Annotated[int, Field(ge=1, le=SQLITE_MAX_INTEGER)]
UInt64 = Annotated[int, Field(ge=0, le=SQLITE_MAX_INTEGER)]
UInt8 = Annotated[int, Field(ge=0, le=255)]

SPEED_LIMIT_COUNT = 13
SpeedLimitId = Annotated[int, Field(ge=1, le=SPEED_LIMIT_COUNT)]
SPEED_BASE_KMH = 30
SPEED_STEP_KMH = 10


class _BaseRecord(BaseModel):
    """Base model for database records with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        extra="forbid",
    )


class SpeedLimit(_BaseRecord):
    """Row of the immutable speed_limit reference table."""

    id: SpeedLimitId
    speed: int = Field(ge=0)  # km/h


def default_speed_limits() -> list[SpeedLimit]:
    """Seed rows: 30 km/h for id 1 up to 150 km/h for id 13."""
    return [
        SpeedLimit(id=i, speed=SPEED_BASE_KMH + SPEED_STEP_KMH * (i - 1))
        for i in range(1, SPEED_LIMIT_COUNT + 1)
    ]


class Way(_BaseRecord):
    """A directed road segment with predecessor/successor links and a speed range."""

    way_id: WayId
    pre_way_id: WayId | None = None
    next_way_id: WayId | None = None
    speed_min: SpeedLimitId | None = None
    speed_max: SpeedLimitId | None = None

    @field_validator("pre_way_id", "next_way_id", "speed_min", "speed_max", mode="before")
    @classmethod
    def zero_means_none(cls, v: Any) -> Any:
        """Map the legacy sentinel 0 to None."""
        if v == 0:
            return None
        return v

    @property
    def has_predecessor(self) -> bool:
        return self.pre_way_id is not None

    @property
    def has_successor(self) -> bool:
        return self.next_way_id is not None


class Node(_BaseRecord):
    """One node of a way, pointing back to its line in the source file."""

    node_index: UInt64
    data_line_number: UInt64
    node_value: str


class WayNodes(_BaseRecord):
    """Ordered node list of a way. Replaced wholesale on update."""

    way_id: WayId
    nodes: list[Node] = Field(default_factory=list)


class WayData(_BaseRecord):
    """Raw ingested data of a way and the shard holding its navigation entries."""

    way_id: WayId
    raw_data: bytes = b""
    navi_number: UInt8 = 0
    navi_table_id: UInt64 = 0


class NaviData(_BaseRecord):
    """One serialized navigation instruction set."""

    navi_index: UInt8
    data: bytes = b""


class NaviInfo(_BaseRecord):
    """Ordered navigation entries of a way."""

    way_id: WayId
    navi_data: list[NaviData] = Field(default_factory=list)
