"""
climecol - Centralized Configuration Module

Single source of truth for the thresholds, column names and defaults used by
the cleaning, validation, fitting and scenario modules. Every section is a
dataclass with a ``validate()`` method so a bad value fails fast, before any
data is touched.

Author: climecol Team
Version: 0.1.0
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple
import math


# =============================================================================
# Environment Detection
# =============================================================================
def _get_project_root() -> Path:
    """Detect project root by looking for the entry script."""
    current = Path(__file__).resolve().parent.parent

    for _ in range(5):  # Max 5 levels up
        if (current / "run_cleaning.py").exists():
            return current
        current = current.parent

    return Path(__file__).resolve().parent.parent


PROJECT_ROOT = _get_project_root()


# =============================================================================
# Column Conventions
# =============================================================================
# Standardized names produced by the normalizer and consumed everywhere else.
STANDARD_COLUMNS: List[str] = [
    "station",
    "climate_id",
    "lon",
    "lat",
    "date",
    "tmax_c",
    "tmin_c",
    "tavg_c",
    "rain_mm",
    "snow_cm",
    "precip_mm",
    "snow_on_ground_cm",
    "wind_dir_deg",
    "wind_spd_kmh",
]

MEASUREMENT_COLUMNS: List[str] = [
    "tmax_c",
    "tmin_c",
    "tavg_c",
    "rain_mm",
    "snow_cm",
    "precip_mm",
    "snow_on_ground_cm",
    "wind_dir_deg",
    "wind_spd_kmh",
]

DEFAULT_IMPUTE_COLS: List[str] = ["tmax_c", "tmin_c", "tavg_c", "wind_spd_kmh"]

SYNTHETIC_FLAG_COL = "is_synthetic"


# =============================================================================
# Data Configuration
# =============================================================================
@dataclass
class DataConfig:
    """Configuration for data loading and export."""

    # Paths (relative to project root)
    data_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "data")
    input_csv: str = "weather_daily.csv"
    output_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "outputs")

    # Column names
    entity_col: str = "station"
    date_col: str = "date"

    # Tokens treated as missing when reading raw exports
    na_values: List[str] = field(
        default_factory=lambda: ["NA", "", "M", "-9999", "-9999.9"]
    )

    @property
    def data_path(self) -> Path:
        """Full path to the input CSV."""
        return self.data_dir / self.input_csv

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.entity_col:
            raise ValueError("entity_col cannot be empty")
        if not self.date_col:
            raise ValueError("date_col cannot be empty")


# =============================================================================
# Imputation Configuration
# =============================================================================
@dataclass
class ImputationConfig:
    """Configuration for the bounded gap imputer."""

    method: str = "linear"  # "locf", "linear" or "spline"
    cols: List[str] = field(default_factory=lambda: list(DEFAULT_IMPUTE_COLS))
    max_gap: float = math.inf  # Longest run (days) that may be overwritten
    add_flags: bool = False
    n_jobs: int = 1

    def validate(self) -> None:
        """Validate configuration values."""
        if self.method not in ("locf", "linear", "spline"):
            raise ValueError(
                f"method must be one of 'locf', 'linear', 'spline', got {self.method!r}"
            )
        if not self.max_gap >= 1:
            raise ValueError(f"max_gap must be >= 1, got {self.max_gap}")
        if self.n_jobs == 0:
            raise ValueError("n_jobs cannot be 0")


# =============================================================================
# Validation Configuration
# =============================================================================
@dataclass
class ValidationConfig:
    """Thresholds for the physical plausibility checks."""

    temp_bounds: Tuple[float, float] = (-60.0, 60.0)
    rain_max: float = 200.0  # mm/day
    snow_max: float = math.inf  # cm/day, infinite disables the check
    check_precip_consistency: bool = True
    swe_ratio: float = 10.0  # mm of water per cm of snow

    def validate(self) -> None:
        """Validate configuration values."""
        low, high = self.temp_bounds
        if low > high:
            raise ValueError(f"temp_bounds must be (low, high), got {self.temp_bounds}")
        if self.rain_max < 0:
            raise ValueError(f"rain_max must be >= 0, got {self.rain_max}")
        if self.snow_max < 0:
            raise ValueError(f"snow_max must be >= 0, got {self.snow_max}")
        if not self.swe_ratio > 0:
            raise ValueError(f"swe_ratio must be > 0, got {self.swe_ratio}")


# =============================================================================
# Seasonal Fit Configuration
# =============================================================================
@dataclass
class SeasonalFitConfig:
    """Configuration for the nonlinear seasonal curve fitter."""

    funcs: List[str] = field(default_factory=lambda: ["sin1", "sin2"])
    max_nfev: int = 2000  # Solver evaluation cap; hitting it means no convergence

    def validate(self) -> None:
        """Validate configuration values."""
        if self.max_nfev < 1:
            raise ValueError(f"max_nfev must be >= 1, got {self.max_nfev}")


# =============================================================================
# Scenario Configuration
# =============================================================================
@dataclass
class ScenarioConfig:
    """Configuration for temperature and rainfall scenario generation."""

    deltas: List[float] = field(default_factory=lambda: [1, 2, 3, 4, 5])
    temp_model: str = "best"
    rain_scenarios: List[str] = field(
        default_factory=lambda: ["baseline", "dry", "wet", "erratic"]
    )
    dry_scale: float = 0.5
    wet_scale: float = 1.5
    erratic_range: Tuple[float, float] = (0.1, 2.0)
    seed: Optional[int] = 42

    @property
    def scales(self) -> Dict[str, float]:
        """Multipliers for the scaled rainfall scenarios."""
        return {"dry": self.dry_scale, "wet": self.wet_scale}

    def validate(self) -> None:
        """Validate configuration values."""
        if self.dry_scale < 0 or self.wet_scale < 0:
            raise ValueError("rainfall scales must be >= 0")
        low, high = self.erratic_range
        if low > high:
            raise ValueError(f"erratic_range must be (low, high), got {self.erratic_range}")


# =============================================================================
# Master Configuration
# =============================================================================
@dataclass
class PipelineConfig:
    """
    Master configuration for the whole cleaning and fitting pipeline.

    Usage:
        config = PipelineConfig()  # Use defaults
        config.validate()  # Check all values

        # Or customize:
        config = PipelineConfig(
            imputation=ImputationConfig(method="spline", max_gap=5),
            validation=ValidationConfig(rain_max=150),
        )
    """

    data: DataConfig = field(default_factory=DataConfig)
    imputation: ImputationConfig = field(default_factory=ImputationConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    seasonal: SeasonalFitConfig = field(default_factory=SeasonalFitConfig)
    scenario: ScenarioConfig = field(default_factory=ScenarioConfig)

    def validate(self) -> None:
        """Validate all configuration sections."""
        self.data.validate()
        self.imputation.validate()
        self.validation.validate()
        self.seasonal.validate()
        self.scenario.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for logging/serialization."""
        return {
            "project_root": str(PROJECT_ROOT),
            "data": {
                "data_path": str(self.data.data_path),
                "output_dir": str(self.data.output_dir),
                "entity_col": self.data.entity_col,
                "date_col": self.data.date_col,
            },
            "imputation": {
                "method": self.imputation.method,
                "cols": list(self.imputation.cols),
                "max_gap": self.imputation.max_gap,
            },
            "validation": {
                "temp_bounds": list(self.validation.temp_bounds),
                "rain_max": self.validation.rain_max,
                "snow_max": self.validation.snow_max,
                "check_precip_consistency": self.validation.check_precip_consistency,
                "swe_ratio": self.validation.swe_ratio,
            },
            "seasonal": {
                "funcs": list(self.seasonal.funcs),
                "max_nfev": self.seasonal.max_nfev,
            },
            "scenario": {
                "deltas": list(self.scenario.deltas),
                "temp_model": self.scenario.temp_model,
                "rain_scenarios": list(self.scenario.rain_scenarios),
                "scales": self.scenario.scales,
                "erratic_range": list(self.scenario.erratic_range),
                "seed": self.scenario.seed,
            },
        }


# =============================================================================
# Default Instance
# =============================================================================
DEFAULT_CONFIG = PipelineConfig()


if __name__ == "__main__":
    config = PipelineConfig()
    config.validate()
    print("✓ Configuration validated successfully")
    print(f"\nProject root: {PROJECT_ROOT}")
    print(f"Data path: {config.data.data_path}")
    for section, values in config.to_dict().items():
        print(f"  {section}: {values}")
