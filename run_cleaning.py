#!/usr/bin/env python
"""
climecol - Cleaning & Fitting Entry Script

This script runs the daily weather workflow end-to-end:
1. Load and normalize the raw CSV
2. Complete the daily calendar and summarise gaps
3. Impute short gaps
4. Validate physical plausibility
5. Fit seasonal temperature curves
6. Generate temperature and rainfall scenarios
7. Save tables, a JSON summary and (optionally) figures

Usage:
    python run_cleaning.py --input data/weather_daily.csv
    python run_cleaning.py --input data/st_johns.csv --method spline --max-gap 5 \
        --funcs sin1 sin2 --deltas 1 2 3 --seed 7 --plots

Author: climecol Team
Version: 0.1.0
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# =============================================================================
# Project Setup
# =============================================================================
PROJECT_ROOT = Path(__file__).parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from climecol.config import (  # noqa: E402
    DataConfig,
    ImputationConfig,
    PipelineConfig,
    ScenarioConfig,
    SeasonalFitConfig,
)
from climecol.data_pipeline import export_weather, run_data_pipeline  # noqa: E402
from climecol.models.seasonal_fit import fit_seasonal_temp  # noqa: E402
from climecol.scenarios.rainfall import (  # noqa: E402
    simulate_rainfall_scenarios,
    summarise_rainfall_monthly,
)
from climecol.scenarios.temperature import simulate_temp_shifts  # noqa: E402
from climecol.utils import save_json  # noqa: E402


# =============================================================================
# Logging Configuration
# =============================================================================
def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure logging for the cleaning pipeline.

    Logs are written to both console and a timestamped log file.
    """
    log_dir = PROJECT_ROOT / "logs"
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"cleaning_{timestamp}.log"

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger = logging.getLogger("climecol")
    logger.info(f"Logging initialized. Log file: {log_file}")

    return logger


# =============================================================================
# Main Pipeline
# =============================================================================
def main(config: Optional[PipelineConfig] = None, make_plots: bool = False) -> Dict[str, Any]:
    """
    Run the complete cleaning and fitting workflow.

    Parameters
    ----------
    config : PipelineConfig, optional
        Pipeline configuration. Uses defaults if not provided.
    make_plots : bool
        Also render PNG figures into the output directory.

    Returns
    -------
    dict
        Cleaning outputs, the seasonal fit, scenario tables and output paths.
    """
    logger = logging.getLogger("climecol")
    config = config or PipelineConfig()
    config.validate()

    out_dir = Path(config.data.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 70)
    print("CLIMECOL - DAILY WEATHER CLEANING & SEASONAL FITTING")
    print("=" * 70)
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Input: {config.data.data_path}")
    print()

    logger.info("=" * 60)
    logger.info("PIPELINE START")
    logger.info("=" * 60)

    # -------------------------------------------------------------------------
    # Step 1-4: Cleaning
    # -------------------------------------------------------------------------
    print("\n" + "=" * 70)
    print("STEP 1-4: LOAD, CALENDAR, IMPUTE, VALIDATE")
    print("=" * 70)

    results = run_data_pipeline(config)
    report = results["validation"]
    print(report.summary.T.to_string(header=False))

    # -------------------------------------------------------------------------
    # Step 5: Seasonal fit
    # -------------------------------------------------------------------------
    print("\n" + "=" * 70)
    print("STEP 5: SEASONAL TEMPERATURE FIT")
    print("=" * 70)

    fit = fit_seasonal_temp(
        results["df_imputed"],
        funcs=config.seasonal.funcs,
        config=config.seasonal,
    )
    results["seasonal_fit"] = fit
    print(fit.metrics.to_string(index=False))

    # -------------------------------------------------------------------------
    # Step 6: Scenarios
    # -------------------------------------------------------------------------
    print("\n" + "=" * 70)
    print("STEP 6: SCENARIOS")
    print("=" * 70)

    if fit.fits:
        temp_model = config.scenario.temp_model
        if temp_model == "best":
            temp_model = fit.best_model()
        results["temp_scenarios"] = simulate_temp_shifts(
            fit, deltas=config.scenario.deltas, model=temp_model
        )
        print(f"✓ Temperature scenarios from model '{temp_model}'")
    else:
        logger.warning("No seasonal model converged; skipping temperature scenarios")

    df_raw = results["df_raw"]
    has_rain = "rain_mm" in df_raw.columns and df_raw["rain_mm"].notna().any()
    if has_rain:
        results["rain_scenarios"] = simulate_rainfall_scenarios(
            df_raw,
            scenarios=config.scenario.rain_scenarios,
            scales=config.scenario.scales,
            erratic_range=config.scenario.erratic_range,
            seed=config.scenario.seed,
        )
        results["rain_monthly"] = summarise_rainfall_monthly(df_raw)
        print("✓ Rainfall scenarios generated")
    else:
        logger.warning("No rainfall observations; skipping rainfall scenarios")

    # -------------------------------------------------------------------------
    # Step 7: Save outputs
    # -------------------------------------------------------------------------
    print("\n" + "=" * 70)
    print("STEP 7: SAVE OUTPUTS")
    print("=" * 70)

    meta = {
        "source": config.data.data_path.name,
        "imputation": f"{config.imputation.method} (max_gap={config.imputation.max_gap})",
    }
    paths: Dict[str, Path] = {
        "imputed": export_weather(results["df_imputed"], out_dir / "weather_imputed.csv", meta=meta),
    }
    tables = {
        "gaps_station": results["gaps_station"],
        "gaps_month": results["gaps_month"],
        "validation_flags": report.flags,
        "seasonal_daily": fit.daily_average,
        "seasonal_metrics": fit.metrics,
        "temp_scenarios": results.get("temp_scenarios"),
        "rain_scenarios": results.get("rain_scenarios"),
        "rain_monthly": results.get("rain_monthly"),
    }
    for name, table in tables.items():
        if table is not None:
            paths[name] = out_dir / f"{name}.csv"
            table.to_csv(paths[name], index=False)

    summary = {
        "created_at": datetime.now().isoformat(),
        "config": config.to_dict(),
        "validation": report.summary.iloc[0].to_dict(),
        "seasonal_models": fit.metrics.to_dict(orient="records"),
        "failed_models": list(fit.failed),
    }
    paths["summary"] = out_dir / "summary.json"
    save_json(summary, paths["summary"])

    if make_plots:
        from climecol.visualization import (
            plot_rainfall,
            plot_rainfall_scenarios,
            plot_seasonal_fit,
        )

        ax = plot_seasonal_fit(fit)
        paths["fig_seasonal"] = out_dir / "seasonal_fit.png"
        ax.figure.savefig(paths["fig_seasonal"])
        if "rain_scenarios" in results:
            paths["fig_rain"] = out_dir / "rainfall.png"
            plot_rainfall(df_raw).savefig(paths["fig_rain"])
            ax = plot_rainfall_scenarios(results["rain_scenarios"])
            paths["fig_rain_scenarios"] = out_dir / "rainfall_scenarios.png"
            ax.figure.savefig(paths["fig_rain_scenarios"])

    for name, path in paths.items():
        print(f"  {name}: {path}")
        logger.info(f"Saved {name}: {path}")

    results["paths"] = paths

    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETE")
    logger.info("=" * 60)
    print("\n✓ Done")
    return results


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Clean daily weather data and fit seasonal curves"
    )
    parser.add_argument("--input", type=Path, required=True, help="Daily weather CSV")
    parser.add_argument("--output-dir", type=Path, default=PROJECT_ROOT / "outputs")
    parser.add_argument("--method", choices=["locf", "linear", "spline"], default="linear")
    parser.add_argument("--max-gap", type=float, default=float("inf"),
                        help="Longest gap (days) linear/spline may fill")
    parser.add_argument("--funcs", nargs="+", default=["sin1", "sin2"])
    parser.add_argument("--deltas", nargs="+", type=float, default=[1, 2, 3, 4, 5])
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--plots", action="store_true", help="Save PNG figures")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    """Build the pipeline configuration from command line arguments."""
    input_path = args.input.resolve()
    return PipelineConfig(
        data=DataConfig(
            data_dir=input_path.parent,
            input_csv=input_path.name,
            output_dir=args.output_dir,
        ),
        imputation=ImputationConfig(method=args.method, max_gap=args.max_gap),
        seasonal=SeasonalFitConfig(funcs=list(args.funcs)),
        scenario=ScenarioConfig(deltas=list(args.deltas), seed=args.seed),
    )


if __name__ == "__main__":
    args = parse_args()
    setup_logging(args.log_level)
    try:
        main(config_from_args(args), make_plots=args.plots)
    except (FileNotFoundError, ValueError) as e:
        logging.getLogger("climecol").error(f"Pipeline failed: {e}")
        print(f"\n❌ ERROR: {e}")
        sys.exit(1)
