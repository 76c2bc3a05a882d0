"""
photoperiod.py
==============

Astronomical daylength (photoperiod) for ecological drivers.

Daylength follows Forsythe et al. (1995), "A model comparison for daylength
as a function of latitude and day of year", using the sunrise/sunset
definition where the top of the sun is at the horizon (p = 0.8333°):

    delta  = 0.409 * sin(2*pi*n/365 - 1.39)
    cos(H) = (sin(p) - sin(phi)*sin(delta)) / (cos(phi)*cos(delta))
    D      = 24 * H / pi

Locations can be given by latitude or by the name of a built-in study site;
site names are matched on a normalized key, with a one-edit tolerance.

Usage:
    from climecol.models.photoperiod import photoperiod_year

    df = photoperiod_year(2024, location="St. John's")
    monthly = photoperiod_year(2024, lat=6.69, aggregate="month")

Author: climecol Team
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

_SIN_HORIZON = -0.01454  # sin(-0.8333 deg)


@dataclass(frozen=True)
class PhotoperiodSite:
    """A named study site with its latitude (decimal degrees, north positive)."""

    key: str
    name: str
    lat: float


PHOTOPERIOD_SITES: Mapping[str, PhotoperiodSite] = MappingProxyType({
    site.key: site
    for site in (
        PhotoperiodSite("st_johns", "St. John's, Newfoundland", 47.56),
        PhotoperiodSite("saint_john", "Saint John, New Brunswick", 45.27),
        PhotoperiodSite("kumasi", "Kumasi, Ghana", 6.69),
        PhotoperiodSite("nairobi", "Nairobi, Kenya", -1.29),
        PhotoperiodSite("cape_town", "Cape Town, South Africa", -33.92),
        PhotoperiodSite("ain_mahbel", "Ain Mahbel, Algeria", 34.24),
    )
})


# =============================================================================
# Daylength
# =============================================================================

def daylength_f95(dates, lat: float) -> np.ndarray:
    """
    Daylength in hours for each date at latitude ``lat``.

    Parameters
    ----------
    dates : array-like of dates, or of integer day-of-year values
        Days to evaluate.
    lat : float
        Latitude in decimal degrees.

    Returns
    -------
    np.ndarray
        Hours of daylight, 0..24 (polar night and midnight sun are clamped).
    """
    if not -90 <= lat <= 90:
        raise ValueError(f"lat must be within [-90, 90], got {lat}")

    values = np.atleast_1d(np.asarray(dates))
    if np.issubdtype(values.dtype, np.number):
        day_of_year = values.astype(float)
    else:
        day_of_year = pd.DatetimeIndex(pd.to_datetime(values)).dayofyear.to_numpy(dtype=float)

    phi = np.deg2rad(lat)
    delta = 0.409 * np.sin(2 * np.pi * day_of_year / 365 - 1.39)
    cos_h = (_SIN_HORIZON - np.sin(phi) * np.sin(delta)) / (np.cos(phi) * np.cos(delta))
    hour_angle = np.arccos(np.clip(cos_h, -1.0, 1.0))
    return 24.0 * hour_angle / np.pi


# =============================================================================
# Site lookup
# =============================================================================

def normalize_location_key(name: str) -> str:
    """
    Normalize a place name for lookup.

    ASCII-folds, lowercases, expands a leading ``st``/``st.`` to ``saint``
    and drops everything that is not a letter or digit.

    >>> normalize_location_key("St. John's")
    'saintjohns'
    """
    text = unicodedata.normalize("NFKD", str(name)).encode("ascii", "ignore").decode("ascii")
    text = text.strip().lower()
    text = re.sub(r"^st(\.|\s|_)+", "saint ", text)
    return re.sub(r"[^a-z0-9]", "", text)


def _edit_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def resolve_site(location: str) -> PhotoperiodSite:
    """
    Find the built-in site matching ``location``.

    Exact normalized-key match first, then a unique site within one edit.

    Raises
    ------
    ValueError
        If no site, or more than one site, matches.
    """
    key = normalize_location_key(location)
    by_key = {normalize_location_key(k): site for k, site in PHOTOPERIOD_SITES.items()}

    if key in by_key:
        return by_key[key]

    close = [site for k, site in by_key.items() if _edit_distance(key, k) <= 1]
    if len(close) == 1:
        logger.info(f"Location '{location}' matched site '{close[0].key}'")
        return close[0]

    raise ValueError(
        f"Unknown location {location!r}. Known sites: {sorted(PHOTOPERIOD_SITES)}"
    )


def photoperiod_sites() -> pd.DataFrame:
    """Built-in study sites as a table (site, name, lat)."""
    return pd.DataFrame(
        [(s.key, s.name, s.lat) for s in PHOTOPERIOD_SITES.values()],
        columns=["site", "name", "lat"],
    )


# =============================================================================
# Yearly series
# =============================================================================

def photoperiod_year(
    year: int,
    lat: Optional[float] = None,
    location: Optional[str] = None,
    aggregate: Literal["none", "month"] = "none",
) -> pd.DataFrame:
    """
    Daily (or monthly mean) photoperiod for one calendar year.

    Parameters
    ----------
    year : int
        Calendar year.
    lat : float, optional
        Latitude; ignored when ``location`` is given.
    location : str, optional
        Name of a built-in site.
    aggregate : {"none", "month"}
        Monthly means are dated on the first of each month.

    Returns
    -------
    pd.DataFrame
        Columns: date, daylength_hours, lat, location. Without a site the
        location label is ``lat_<lat>`` with two decimals.
    """
    if location is not None:
        site = resolve_site(location)
        lat, label = site.lat, site.key
    elif lat is not None:
        label = f"lat_{lat:.2f}"
    else:
        raise ValueError("photoperiod_year: provide either lat or location")

    if aggregate not in ("none", "month"):
        raise ValueError(f"aggregate must be 'none' or 'month', got {aggregate!r}")

    dates = pd.date_range(f"{int(year)}-01-01", f"{int(year)}-12-31", freq="D")
    out = pd.DataFrame({"date": dates, "daylength_hours": daylength_f95(dates, lat)})

    if aggregate == "month":
        out = (
            out.groupby(out["date"].dt.to_period("M"))["daylength_hours"]
            .mean()
            .reset_index()
        )
        out["date"] = out["date"].dt.to_timestamp()

    out["lat"] = float(lat)
    out["location"] = label
    return out
