import numpy as np
import pytest

from dla_growth.config import Neighborhood
from dla_growth.occupancy import (
    EMPTY,
    EXTENDED_OFFSETS,
    MOORE_OFFSETS,
    VON_NEUMANN_OFFSETS,
    OccupancyError,
    OccupancyIndex,
)


def test_offset_tables_have_expected_sizes():
    assert len(VON_NEUMANN_OFFSETS) == Neighborhood.VON_NEUMANN.slots == 4
    assert len(MOORE_OFFSETS) == Neighborhood.MOORE.slots == 8
    assert len(EXTENDED_OFFSETS) == Neighborhood.EXTENDED.slots == 24
    for table in (VON_NEUMANN_OFFSETS, MOORE_OFFSETS, EXTENDED_OFFSETS):
        assert len({tuple(o) for o in table.tolist()}) == len(table)
        assert [0, 0] not in table.tolist()


def test_insert_and_lookup():
    occ = OccupancyIndex(10, 8)
    assert occ.extent == (10, 8)
    assert occ.keys.shape == (8, 10)
    occ.insert((3, 5), 0)
    assert occ.is_occupied((3, 5))
    assert occ.is_occupied((3.7, 5.2)), "continuous positions resolve to their cell"
    assert occ.key_at((3, 5)) == 0
    assert occ.key_at((4, 5)) == EMPTY
    assert occ.occupied_count() == 1


def test_insert_collision_is_fatal():
    occ = OccupancyIndex(10, 10)
    occ.insert((4, 4), 0)
    with pytest.raises(OccupancyError):
        occ.insert((4, 4), 1)
    assert occ.key_at((4, 4)) == 0
    assert occ.occupied_count() == 1


def test_insert_outside_grid_is_fatal():
    occ = OccupancyIndex(5, 5)
    with pytest.raises(OccupancyError):
        occ.insert((5, 0), 0)
    with pytest.raises(OccupancyError):
        occ.insert((-1, 2), 0)


def test_out_of_grid_cells_are_unoccupied():
    occ = OccupancyIndex(5, 5)
    assert not occ.is_occupied((-1, 0))
    assert not occ.is_occupied((0, 5))
    assert occ.key_at((7, 7)) == EMPTY


def test_neighbor_counts_per_shape():
    occ = OccupancyIndex(11, 11)
    occ.insert((5, 5), 0)

    # edge-adjacent
    assert occ.neighbor_count((6, 5), Neighborhood.VON_NEUMANN) == 1
    assert occ.neighbor_count((6, 5), Neighborhood.MOORE) == 1
    # diagonal
    assert occ.neighbor_count((6, 6), Neighborhood.VON_NEUMANN) == 0
    assert occ.neighbor_count((6, 6), Neighborhood.MOORE) == 1
    # two cells away
    assert occ.neighbor_count((7, 7), Neighborhood.MOORE) == 0
    assert occ.neighbor_count((7, 7), Neighborhood.EXTENDED) == 1
    assert occ.neighbor_count((8, 5), Neighborhood.EXTENDED) == 0


def test_fully_surrounded_cell():
    occ = OccupancyIndex(5, 5)
    key = 0
    for dx, dy in MOORE_OFFSETS.tolist():
        occ.insert((2 + dx, 2 + dy), key)
        key += 1
    assert occ.neighbor_count((2, 2), Neighborhood.MOORE) == 8
    assert occ.neighbor_count((2, 2), Neighborhood.VON_NEUMANN) == 4
    assert occ.neighbor_count((2, 2), Neighborhood.EXTENDED) == 8


def test_edges_count_as_occupied_when_requested():
    occ = OccupancyIndex(10, 10)
    assert occ.neighbor_count((0, 0), Neighborhood.MOORE) == 0
    assert occ.neighbor_count((0, 0), Neighborhood.MOORE, edges_occupied=True) == 5
    assert occ.neighbor_count((0, 0), Neighborhood.VON_NEUMANN, edges_occupied=True) == 2
    assert occ.neighbor_count((0, 4), Neighborhood.VON_NEUMANN, edges_occupied=True) == 1
    assert occ.neighbor_count((5, 5), Neighborhood.MOORE, edges_occupied=True) == 0


def test_neighbors_wrap_around_the_torus():
    occ = OccupancyIndex(10, 10)
    occ.insert((0, 5), 0)
    assert occ.neighbor_count((9, 5), Neighborhood.VON_NEUMANN) == 0
    assert occ.neighbor_count((9, 5), Neighborhood.VON_NEUMANN, wrap=True) == 1
    occ.insert((3, 0), 1)
    assert occ.neighbor_count((3, 9), Neighborhood.MOORE, wrap=True) == 1


def test_occupied_offsets():
    occ = OccupancyIndex(10, 10)
    occ.insert((5, 5), 0)
    occ.insert((4, 4), 1)
    offsets = occ.occupied_offsets((4, 5), Neighborhood.MOORE)
    assert sorted(map(tuple, offsets.tolist())) == [(0, -1), (1, 0)]
    offsets = occ.occupied_offsets((4, 5), Neighborhood.VON_NEUMANN)
    assert sorted(map(tuple, offsets.tolist())) == [(0, -1), (1, 0)]
    offsets = occ.occupied_offsets((3, 5), Neighborhood.VON_NEUMANN)
    assert offsets.shape == (0, 2)


def test_clear_and_copy_keys():
    occ = OccupancyIndex(6, 6)
    occ.insert((1, 1), 0)
    snapshot = occ.copy_keys()
    occ.clear()
    assert occ.occupied_count() == 0
    assert not occ.is_occupied((1, 1))
    assert snapshot[1, 1] == 0, "copies must not follow later mutation"
    assert np.count_nonzero(occ.keys != EMPTY) == 0


def test_rejects_empty_grid():
    with pytest.raises(ValueError):
        OccupancyIndex(0, 10)
