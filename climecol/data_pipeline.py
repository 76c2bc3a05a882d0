"""
climecol - Data Pipeline Module

This module provides the flat-file side of the toolkit:
- Reading raw daily weather exports into the standard column layout
- Renaming common column-name variants to the standard names
- Exporting cleaned tables with a commented metadata header
- Running the cleaning stages (load → calendar → gaps → impute → validate)

Author: climecol Team
Version: 0.1.0
"""

import logging
import re
import unicodedata
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_CONFIG,
    MEASUREMENT_COLUMNS,
    STANDARD_COLUMNS,
    DataConfig,
    PipelineConfig,
)
from .preprocessing.calendar import complete_daily_calendar
from .preprocessing.gaps import summarise_gaps
from .preprocessing.imputation import impute_weather
from .utils import validate_dataframe
from .validation.weather_checks import validate_weather


# =============================================================================
# Module Logger
# =============================================================================
logger = logging.getLogger(__name__)


DEFAULT_NA_VALUES: List[str] = ["NA", "", "M", "-9999", "-9999.9"]


# =============================================================================
# Column Name Handling
# =============================================================================
def default_weather_mapping() -> Dict[str, str]:
    """
    Standard column name → Environment Canada daily CSV header.

    ``wind_dir_deg10`` is the gust direction in tens of degrees; readers
    convert it to ``wind_dir_deg``.
    """
    return {
        "station": "Station Name",
        "climate_id": "Climate ID",
        "lon": "Longitude (x)",
        "lat": "Latitude (y)",
        "date": "Date/Time",
        "tmax_c": "Max Temp (°C)",
        "tmin_c": "Min Temp (°C)",
        "tavg_c": "Mean Temp (°C)",
        "rain_mm": "Total Rain (mm)",
        "snow_cm": "Total Snow (cm)",
        "precip_mm": "Total Precip (mm)",
        "snow_on_ground_cm": "Snow on Grnd (cm)",
        "wind_dir_deg10": "Dir of Max Gust (10s deg)",
        "wind_spd_kmh": "Spd of Max Gust (km/h)",
    }


def _header_key(name: Any) -> str:
    """Lowercase ASCII letters and digits only: 'Max Temp (°C)' -> 'maxtempc'."""
    text = unicodedata.normalize("NFKD", str(name)).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]", "", text.lower())


def _loose_name(name: Any) -> str:
    """Lowercase with separator runs collapsed: 'Total.Rain..mm.' -> 'total_rain_mm'."""
    text = unicodedata.normalize("NFKD", str(name)).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")


# First matching pattern wins; patterns are matched against _loose_name()
_RENAME_RULES = [
    ("date", r"date(_time)?|datetime"),
    ("tmax_c", r"t_?max(_c)?|max_temp(_c)?"),
    ("tmin_c", r"t_?min(_c)?|min_temp(_c)?"),
    ("tavg_c", r"t_?(avg|mean)(_c)?|mean_temp(_c)?"),
    ("rain_mm", r"(total_)?rain(fall)?(_mm)?"),
    ("snow_cm", r"(total_)?snow(fall)?(_cm)?"),
    ("precip_mm", r"(total_)?precip(itation)?(_mm)?"),
    ("snow_on_ground_cm", r"snow_on_gr(ou)?nd(_cm)?"),
    ("wind_dir_deg10", r"dir_of_max_gust_10s_deg"),
    ("wind_dir_deg", r"(dir_of_max_gust|wind_dir)(_deg)?"),
    ("wind_spd_kmh", r"(spd_of_max_gust|wind_spd|wind_speed)(_km_?h)?"),
    ("lat", r"lat(itude)?(_y)?"),
    ("lon", r"lon(g|gitude)?(_x)?"),
    ("climate_id", r"climate_id"),
    ("station", r"station"),
    ("station_name", r"station_name"),
]


def _apply_tens_of_degrees(df: pd.DataFrame) -> pd.DataFrame:
    """Replace a ``wind_dir_deg10`` column by ``wind_dir_deg`` in degrees."""
    if "wind_dir_deg10" in df.columns:
        tens = pd.to_numeric(df["wind_dir_deg10"], errors="coerce") * 10
        if "wind_dir_deg" not in df.columns or df["wind_dir_deg"].isna().all():
            df["wind_dir_deg"] = tens
        df = df.drop(columns="wind_dir_deg10")
    return df


def normalize_weather_names(
    df: pd.DataFrame,
    station_preference: str = "auto",
) -> pd.DataFrame:
    """
    Rename common weather column variants to the standard names.

    Parameters
    ----------
    df : pd.DataFrame
        Table with e.g. ``Date``, ``T_min_C``, ``Total.Rain..mm.``,
        ``Station.Name``, ``Climate.ID`` columns.
    station_preference : {"auto", "name", "id"}
        Source of the ``station`` column when it is absent: the station name
        column (``auto``/``name``, falling back to the climate ID) or the
        climate ID (``id``). Without either, ``"unknown_station"``.

    Returns
    -------
    pd.DataFrame
        Copy with standard names and ``date`` parsed to datetime. Columns
        that match no rule are kept as they are.
    """
    if station_preference not in ("auto", "name", "id"):
        raise ValueError(f"station_preference must be 'auto', 'name' or 'id', got {station_preference!r}")

    df = df.copy()
    renames: Dict[str, str] = {}
    taken = set(df.columns)
    for col in df.columns:
        loose = _loose_name(col)
        for target, pattern in _RENAME_RULES:
            if re.fullmatch(pattern, loose):
                if col != target and target not in taken:
                    renames[col] = target
                    taken.add(target)
                break
    df = df.rename(columns=renames)

    if "station" not in df.columns:
        name_col = "station_name" if "station_name" in df.columns else None
        id_col = "climate_id" if "climate_id" in df.columns else None
        if station_preference == "id":
            source = id_col or name_col
        else:
            source = name_col or id_col
        df["station"] = df[source].astype(str) if source else "unknown_station"
    if "station_name" in df.columns:
        df = df.drop(columns="station_name")

    df = _apply_tens_of_degrees(df)

    if "date" in df.columns:
        df["date"] = pd.to_datetime(df["date"], errors="coerce").dt.normalize()

    if renames:
        logger.debug(f"Renamed columns: {renames}")
    return df


# =============================================================================
# Reading
# =============================================================================
def _count_comment_lines(path: Path) -> int:
    n = 0
    with open(path, encoding="utf-8-sig") as f:
        for line in f:
            if not line.startswith("#"):
                break
            n += 1
    return n


def read_weather_csv(
    path: Union[str, Path],
    mapping: Optional[Mapping[str, str]] = None,
    station: Optional[str] = None,
    na_values: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Read a daily weather CSV into the standard layout.

    Parameters
    ----------
    path : str or Path
        CSV file. Leading ``#`` comment lines (as written by
        ``export_weather``) are skipped.
    mapping : mapping, optional
        Standard name → raw header. Headers are compared after lowercasing
        and stripping non-alphanumerics. Defaults to
        ``default_weather_mapping()``; columns already carrying a standard
        name are always recognized.
    station : str, optional
        Station label overriding the file content. Without one and without
        a station column, the file stem is used.
    na_values : sequence of str, optional
        Missing-value tokens (default ``NA``, empty, ``M``, ``-9999``,
        ``-9999.9``).

    Returns
    -------
    pd.DataFrame
        Every standard column (all-null when absent from the file), dates at
        day resolution, numeric measurements, sorted by station and date.
        ``tavg_c`` is derived from min/max where missing.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If no date column can be identified.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Weather file not found: {path}")

    na_values = DEFAULT_NA_VALUES if na_values is None else list(na_values)
    mapping = default_weather_mapping() if mapping is None else dict(mapping)

    logger.info(f"Loading weather data from {path}")
    raw = pd.read_csv(
        path,
        skiprows=_count_comment_lines(path),
        na_values=na_values,
        keep_default_na=False,
        dtype=str,
        encoding="utf-8-sig",
    )

    by_key = {_header_key(c): c for c in raw.columns}
    out = pd.DataFrame(index=raw.index)
    for std in STANDARD_COLUMNS + ["wind_dir_deg10"]:
        if std in raw.columns:
            out[std] = raw[std]
        elif std in mapping and _header_key(mapping[std]) in by_key:
            out[std] = raw[by_key[_header_key(mapping[std])]]

    if "date" not in out.columns:
        ymd = [by_key.get(k) for k in ("year", "month", "day")]
        if all(ymd):
            out["date"] = pd.to_datetime(
                raw[ymd]
                .rename(columns=dict(zip(ymd, ["year", "month", "day"])))
                .apply(pd.to_numeric, errors="coerce"),
                errors="coerce",
            )
        else:
            raise ValueError(f"read_weather_csv: no date column found in {path.name}")

    out = _apply_tens_of_degrees(out)

    out["date"] = pd.to_datetime(out["date"], errors="coerce").dt.normalize()
    for col in MEASUREMENT_COLUMNS + ["lat", "lon"]:
        if col in out.columns:
            out[col] = pd.to_numeric(out[col], errors="coerce")
        else:
            out[col] = np.nan

    if station is not None:
        out["station"] = station
    elif "station" not in out.columns or out["station"].isna().all():
        out["station"] = path.stem
    if "climate_id" not in out.columns:
        out["climate_id"] = pd.NA

    missing_avg = out["tavg_c"].isna() & out["tmin_c"].notna() & out["tmax_c"].notna()
    out.loc[missing_avg, "tavg_c"] = (out.loc[missing_avg, "tmin_c"] + out.loc[missing_avg, "tmax_c"]) / 2

    out = out[STANDARD_COLUMNS]
    out = out.sort_values(["station", "date"], kind="mergesort").reset_index(drop=True)

    logger.info(
        f"✓ Loaded {len(out):,} rows for {out['station'].nunique()} station(s) from {path.name}"
    )
    return out


def load_raw_data(
    config: Union[PipelineConfig, DataConfig, None] = None,
) -> pd.DataFrame:
    """
    Load the configured input CSV with ``read_weather_csv``.

    Raises
    ------
    FileNotFoundError
        If the CSV file does not exist.
    """
    if config is None:
        data_config = DEFAULT_CONFIG.data
    elif isinstance(config, PipelineConfig):
        data_config = config.data
    elif isinstance(config, DataConfig):
        data_config = config
    else:
        raise TypeError("config must be PipelineConfig, DataConfig, or None")

    return read_weather_csv(data_config.data_path, na_values=data_config.na_values)


# =============================================================================
# Export
# =============================================================================
def export_weather(
    df: pd.DataFrame,
    path: Union[str, Path],
    meta: Optional[Mapping[str, Any]] = None,
    overwrite: bool = True,
) -> Path:
    """
    Write a weather table as CSV preceded by a commented metadata block.

    The file starts with ``# Weather data export``, then one ``# key: value``
    line for the package version, the export date and each ``meta`` entry,
    a blank line, and the CSV itself.

    Raises
    ------
    FileExistsError
        If ``path`` exists and ``overwrite`` is False.
    """
    from . import __version__

    validate_dataframe(df, [], context="export_weather")
    path = Path(path)
    if path.exists() and not overwrite:
        raise FileExistsError(f"File exists and overwrite=False: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)

    header = {"package": f"climecol {__version__}", "date": date.today().isoformat()}
    header.update({str(k): v for k, v in (meta or {}).items()})

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write("# Weather data export\n")
        for key, value in header.items():
            f.write(f"# {key}: {value}\n")
        f.write("\n")
        df.to_csv(f, index=False, date_format="%Y-%m-%d")

    logger.info(f"✓ Exported {len(df):,} rows to {path}")
    return path


# =============================================================================
# Full Pipeline Function
# =============================================================================
def run_data_pipeline(
    config: Optional[PipelineConfig] = None,
    df: Optional[pd.DataFrame] = None,
) -> Dict[str, Any]:
    """
    Run the cleaning stages: load → calendar → gaps → impute → validate.

    Parameters
    ----------
    config : PipelineConfig, optional
        Pipeline configuration; ``DEFAULT_CONFIG`` when omitted.
    df : pd.DataFrame, optional
        Already loaded weather table; when omitted it is read from
        ``config.data.data_path``.

    Returns
    -------
    dict
        - df_raw: input table with standard names
        - df_complete: calendar-completed table
        - gaps_station, gaps_month: coverage summaries
        - df_imputed: gap-filled table
        - validation: ValidationReport on the raw table
    """
    pipe_config = config or DEFAULT_CONFIG
    pipe_config.validate()
    entity_col, date_col = pipe_config.data.entity_col, pipe_config.data.date_col

    logger.info("=" * 60)
    logger.info("DATA PIPELINE START")
    logger.info("=" * 60)

    if df is None:
        df_raw = load_raw_data(pipe_config)
    else:
        df_raw = normalize_weather_names(df)
    validate_dataframe(df_raw, [entity_col, date_col], context="run_data_pipeline", allow_empty=False)

    df_complete = complete_daily_calendar(df_raw, entity_col=entity_col, date_col=date_col)
    gaps_station = summarise_gaps(df_complete, by="station", entity_col=entity_col, date_col=date_col)
    gaps_month = summarise_gaps(df_complete, by="month", entity_col=entity_col, date_col=date_col)

    df_imputed = impute_weather(
        df_complete,
        entity_col=entity_col,
        date_col=date_col,
        config=pipe_config.imputation,
    )

    report = validate_weather(
        df_raw,
        config=pipe_config.validation,
        entity_col=entity_col,
        date_col=date_col,
    )

    logger.info("=" * 60)
    logger.info("DATA PIPELINE COMPLETE")
    logger.info("=" * 60)

    return {
        "df_raw": df_raw,
        "df_complete": df_complete,
        "gaps_station": gaps_station,
        "gaps_month": gaps_month,
        "df_imputed": df_imputed,
        "validation": report,
    }
