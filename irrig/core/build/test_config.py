from __future__ import annotations

import pytest

from irrig.core.build.config import EngineConfig, SafetyConfig, SelectionConfig


def test_empty_dict_gives_defaults():
    cfg = EngineConfig.from_dict({})
    assert cfg == EngineConfig()
    assert cfg.hydraulics.connection_loss_ratio == pytest.approx(0.03)
    assert cfg.selection.ideal_pipe_velocity_m_s == pytest.approx(1.4)
    assert cfg.safety.factor("medium") == pytest.approx(1.08)


def test_allowed_pipe_types_from_flat_keys():
    cfg = SelectionConfig.from_dict({"allowed_main_pipe_types": "PVC; HDPE PE100"})
    assert cfg.allowed_for("main") == ("PVC", "HDPE PE100")
    assert cfg.allowed_for("branch") == ()


def test_unknown_pipe_material_is_rejected():
    with pytest.raises(ValueError):
        SelectionConfig.from_dict({"allowed_branch_pipe_types": "cardboard"})


def test_string_values_are_coerced():
    cfg = EngineConfig.from_dict({"connection_loss_ratio": "0.05", "min_pipe_pn": "8"})
    assert cfg.hydraulics.connection_loss_ratio == pytest.approx(0.05)
    assert cfg.selection.min_pipe_pn == pytest.approx(8.0)


def test_safety_factors_are_fixed():
    with pytest.raises(ValueError):
        SafetyConfig(simple=1.2).validate()
    with pytest.raises(ValueError):
        SafetyConfig.from_dict({"medium_points": 9, "complex_points": 8})


def test_bad_hydraulics_value():
    with pytest.raises(ValueError):
        EngineConfig.from_dict({"sprinkler_working_ratio": 1.5})
