import pytest

from dla_growth.config import (
    BoundaryBehavior,
    DLAParams,
    Neighborhood,
    SeedPattern,
    SpawnMode,
)


def test_defaults_are_in_range():
    params = DLAParams()
    assert params.clamped() == params


def test_from_dict_accepts_loose_keys_and_names():
    params = DLAParams.from_dict(
        {
            "particles": 500,
            "neighbors": "von-neumann",
            "bound": "Wrap",
            "lattice": "on",
            "adaptive-step": "off",
            "seed-pattern": "ring",
            "spawn_mode": "top",
            "walk-angle": 90,
            "rng_seed": 4,
        }
    )
    assert params.num_particles == 500
    assert params.neighborhood is Neighborhood.VON_NEUMANN
    assert params.boundary is BoundaryBehavior.WRAP
    assert params.lattice_walk is True
    assert params.adaptive_step is False
    assert params.seed_pattern is SeedPattern.RING
    assert params.spawn_mode is SpawnMode.TOP
    assert params.walk_angle == 90
    assert params.rng_seed == 4


def test_from_dict_rejects_unknown_keys_and_values():
    with pytest.raises(ValueError):
        DLAParams.from_dict({"temperature": 3})
    with pytest.raises(ValueError):
        DLAParams.from_dict({"boundary": "teleport"})
    with pytest.raises(ValueError):
        DLAParams.from_dict({"lattice": "sometimes"})


def test_seed_pattern_and_rng_seed_have_no_shared_alias():
    with pytest.raises(ValueError):
        DLAParams.from_dict({"seed": "ring"})
    params = DLAParams.from_dict({"seed_pattern": "ring", "rng_seed": 3})
    assert params.seed_pattern is SeedPattern.RING
    assert params.rng_seed == 3


def test_clamped_clips_every_range():
    params = DLAParams(
        num_particles=5,
        stickiness=2.0,
        multi_contact=9,
        walk_angle=370.0,
        walk_force=-1.0,
        max_iterations=10**9,
        speed=0,
    ).clamped()
    assert params.num_particles == 100 and isinstance(params.num_particles, int)
    assert params.stickiness == 1.0
    assert params.multi_contact == 4
    assert params.walk_angle == pytest.approx(10.0)
    assert params.walk_force == 0.0
    assert params.max_iterations == 50_000
    assert params.speed == 1


def test_to_dict_round_trips_through_from_dict():
    params = DLAParams(boundary=BoundaryBehavior.BOUNCE, seed_pattern=SeedPattern.STARBURST)
    data = params.to_dict()
    assert data["boundary"] == "bounce"
    assert data["neighborhood"] == "moore"
    assert DLAParams.from_dict(data) == params


def test_enum_cycling():
    assert BoundaryBehavior.ABSORB.next() is BoundaryBehavior.CLAMP
    assert BoundaryBehavior.CLAMP.prev() is BoundaryBehavior.ABSORB
    assert Neighborhood.MOORE.next() is Neighborhood.EXTENDED
    assert [n.slots for n in Neighborhood] == [4, 8, 24]
