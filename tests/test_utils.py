import json

import numpy as np
import pytest

from dla_growth import DLAEngine, DLAParams, utils
from dla_growth.config import BoundaryBehavior, SeedPattern


def test_load_params_json_and_toml(tmp_path):
    json_path = tmp_path / "preset.json"
    json_path.write_text(json.dumps({"particles": 800, "bound": "bounce"}))
    toml_path = tmp_path / "preset.toml"
    toml_path.write_text('particles = 800\nbound = "bounce"\n')

    for path in (json_path, toml_path):
        params = utils.load_dla_params(path)
        assert params.num_particles == 800
        assert params.boundary is BoundaryBehavior.BOUNCE


def test_load_dla_params_clamps_by_default(tmp_path):
    path = tmp_path / "preset.json"
    path.write_text(json.dumps({"particles": 50000, "speed": 0}))
    assert utils.load_dla_params(path).num_particles == 10_000
    assert utils.load_dla_params(path).speed == 1
    assert utils.load_dla_params(path, clamp=False).num_particles == 50000


def test_unsupported_format(tmp_path):
    path = tmp_path / "preset.yaml"
    path.write_text("particles: 10\n")
    with pytest.raises(ValueError):
        utils.load_params(path)


def test_exported_summary_loads_back(tmp_path):
    params = DLAParams(num_particles=200, seed_pattern=SeedPattern.CROSS, rng_seed=1)
    engine = DLAEngine(64, 64, params)
    path = utils.save_export(tmp_path / "out" / "summary.json", engine.export_state())
    assert path.exists()
    loaded = utils.load_dla_params(path)
    assert loaded.to_dict() == params.to_dict()


def test_structure_round_trip(tmp_path):
    params = DLAParams(num_particles=200, seed_pattern=SeedPattern.LINE, rng_seed=2)
    engine = DLAEngine(64, 64, params)
    record = engine.to_record()
    path = utils.save_structure(tmp_path / "runs" / "structure.npz", record)

    loaded = utils.load_structure(path)
    np.testing.assert_array_equal(loaded.occupied, record.occupied)
    np.testing.assert_allclose(loaded.positions, record.positions)
    np.testing.assert_array_equal(loaded.ages, np.arange(1, engine.particle_count() + 1))
    assert loaded.count == engine.particle_count()
    assert loaded.meta["seed_pattern"] == "line"
    assert loaded.meta["rng_seed"] == 2


def test_save_refuses_overwrite_when_asked(tmp_path):
    path = tmp_path / "structure.npz"
    record = utils.StructureRecord(
        occupied=np.zeros((4, 4), dtype=bool),
        positions=np.zeros((0, 2)),
        ages=np.zeros(0, dtype=np.int64),
    )
    utils.save_structure(path, record)
    with pytest.raises(FileExistsError):
        utils.save_structure(path, record, overwrite=False)
    assert utils.load_structure(path).count == 0
