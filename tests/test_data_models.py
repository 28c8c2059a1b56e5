"""Tests for the record models."""
import pytest
from pydantic import ValidationError

from navi_generator.data_models import (
    SQLITE_MAX_INTEGER,
    NaviData,
    NaviInfo,
    Node,
    Way,
    WayData,
    WayNodes,
    default_speed_limits,
)


class TestWay:
    """Tests for the Way model."""

    def test_zero_links_become_none(self):
        way = Way(way_id=1, pre_way_id=0, next_way_id=0, speed_min=0, speed_max=0)

        assert way.pre_way_id is None
        assert way.next_way_id is None
        assert way.speed_min is None
        assert way.speed_max is None
        assert not way.has_predecessor
        assert not way.has_successor

    def test_nonzero_links_kept(self):
        way = Way(way_id=2, pre_way_id=1, next_way_id=3, speed_min=2, speed_max=13)

        assert way.pre_way_id == 1
        assert way.next_way_id == 3
        assert way.has_predecessor
        assert way.has_successor

    def test_sentinel_and_none_compare_equal(self):
        assert Way(way_id=1, pre_way_id=0) == Way(way_id=1, pre_way_id=None)

    def test_way_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            Way(way_id=0)

    def test_way_id_bounded_by_sqlite_integer(self):
        Way(way_id=SQLITE_MAX_INTEGER)
        with pytest.raises(ValidationError):
            Way(way_id=SQLITE_MAX_INTEGER + 1)

    def test_speed_reference_out_of_range(self):
        with pytest.raises(ValidationError):
            Way(way_id=1, speed_max=14)

    def test_assignment_is_validated(self):
        way = Way(way_id=1)
        way.next_way_id = 0
        assert way.next_way_id is None
        with pytest.raises(ValidationError):
            way.speed_min = 99

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError):
            Way(way_id=1, name="A9")


class TestAggregates:
    """Tests for the child record models."""

    def test_way_nodes_keep_order(self):
        nodes = [Node(node_index=i, data_line_number=10 + i, node_value=f"v{i}") for i in (2, 0, 1)]
        way_nodes = WayNodes(way_id=4, nodes=nodes)

        assert [n.node_index for n in way_nodes.nodes] == [2, 0, 1]

    def test_navi_index_is_a_byte(self):
        NaviData(navi_index=255, data=b"x")
        with pytest.raises(ValidationError):
            NaviData(navi_index=256, data=b"x")

    def test_navi_number_is_a_byte(self):
        with pytest.raises(ValidationError):
            WayData(way_id=1, navi_number=-1)

    def test_defaults(self):
        assert WayData(way_id=1).raw_data == b""
        assert NaviInfo(way_id=1).navi_data == []
        assert WayNodes(way_id=1).nodes == []


def test_default_speed_limits():
    speed_limits = default_speed_limits()

    assert [(s.id, s.speed) for s in speed_limits] == [(i, 30 + 10 * (i - 1)) for i in range(1, 14)]
    assert speed_limits[-1].speed == 150
