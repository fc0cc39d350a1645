import json

import pytest

from evolve_sim.core.config import (
    SimulationConfig, default_config, load_config, save_config,
)


def test_defaults_match_standard_run():
    cfg = default_config()
    assert cfg.world.width == 1000.0
    assert cfg.organism.count == 100
    assert cfg.energy.energy_efficiency_range == (0.8, 1.2)
    assert cfg.reproduction.threshold == 0.75
    assert cfg.reproduction.max_population == 1000
    assert cfg.chemical.depletion_multiplier == 2.0
    assert cfg.field_cache.use_grid is True
    cfg.validate()


def test_round_trip_through_file(tmp_path):
    path = tmp_path / 'config.json'
    cfg = default_config()
    cfg.organism.count = 7
    cfg.energy.energy_efficiency_range = (0.5, 1.5)
    save_config(cfg, str(path))

    loaded = load_config(str(path))
    assert loaded.organism.count == 7
    assert loaded.energy.energy_efficiency_range == (0.5, 1.5)
    assert loaded == cfg


def test_partial_file_fills_defaults(tmp_path):
    path = tmp_path / 'partial.json'
    path.write_text(json.dumps({'world': {'width': 200}, 'unknown_key': 1}))
    cfg = load_config(str(path))
    assert cfg.world.width == 200
    assert cfg.world.height == 1000.0
    assert cfg.organism.count == 100


def test_missing_file_created_with_defaults(tmp_path, capsys):
    path = tmp_path / 'new.json'
    cfg = load_config(str(path))
    assert path.exists()
    assert cfg == default_config()
    assert '[Config]' in capsys.readouterr().out


def test_missing_file_raises_when_not_creating(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'nope.json'), create_missing=False)


def test_malformed_json_raises(tmp_path):
    path = tmp_path / 'bad.json'
    path.write_text('{not json')
    with pytest.raises(json.JSONDecodeError):
        load_config(str(path))


def test_out_of_range_value_names_key(tmp_path):
    path = tmp_path / 'bad_value.json'
    path.write_text(json.dumps({'world': {'width': -5}}))
    with pytest.raises(ValueError, match='world.width'):
        load_config(str(path))


def test_section_must_be_object():
    with pytest.raises(ValueError):
        SimulationConfig.from_dict({'world': 5})
