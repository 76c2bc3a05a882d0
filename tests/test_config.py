"""
tests/test_config.py

Configuration sections: defaults, validation and serialization.
"""

import json
import math
from dataclasses import fields

import pytest

from climecol.config import (
    DEFAULT_CONFIG,
    DataConfig,
    ImputationConfig,
    PipelineConfig,
    ScenarioConfig,
    SeasonalFitConfig,
    ValidationConfig,
)


def test_defaults_validate() -> None:
    DEFAULT_CONFIG.validate()
    assert DEFAULT_CONFIG.imputation.max_gap == math.inf
    assert DEFAULT_CONFIG.validation.rain_max == 200.0
    assert DEFAULT_CONFIG.scenario.scales == {"dry": 0.5, "wet": 1.5}


@pytest.mark.parametrize(
    "section",
    [
        DataConfig(entity_col=""),
        ImputationConfig(method="mean"),
        ImputationConfig(max_gap=0),
        ImputationConfig(n_jobs=0),
        ValidationConfig(temp_bounds=(10, -10)),
        ValidationConfig(rain_max=-1),
        ValidationConfig(swe_ratio=0),
        SeasonalFitConfig(max_nfev=0),
        ScenarioConfig(dry_scale=-0.5),
        ScenarioConfig(erratic_range=(2.0, 0.1)),
    ],
)
def test_invalid_sections_rejected(section) -> None:
    with pytest.raises(ValueError):
        section.validate()


def test_pipeline_validate_checks_every_section() -> None:
    config = PipelineConfig(scenario=ScenarioConfig(erratic_range=(3, 1)))
    with pytest.raises(ValueError, match="erratic_range"):
        config.validate()


def test_to_dict_is_json_serializable(tmp_path) -> None:
    config = PipelineConfig(data=DataConfig(data_dir=tmp_path, input_csv="x.csv"))
    payload = config.to_dict()

    assert payload["data"]["data_path"] == str(tmp_path / "x.csv")
    assert set(payload) >= {"data", "imputation", "validation", "seasonal", "scenario"}
    json.dumps(payload)


def test_sections_are_independent_instances() -> None:
    a, b = ImputationConfig(), ImputationConfig()
    a.cols.append("rain_mm")
    assert "rain_mm" not in b.cols


def test_seasonal_fields_all_serialized() -> None:
    payload = PipelineConfig().to_dict()
    assert {f.name for f in fields(SeasonalFitConfig)} == set(payload["seasonal"])
