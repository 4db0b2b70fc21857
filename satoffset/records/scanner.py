"""
Detection of spacecraft observations in 80-column MPC astrometry.

Horizons expects times for vector ephemerides in TDB, not UTC, so every
accepted observation epoch is converted with astropy.time before it is
stored or compared.
"""

import calendar
import logging
from typing import Iterable, List, Optional

from astropy.time import Time

from ..data.source import OffsetRequest
from ..config import (
    MPC_RECORD_LENGTH, NOTE2_COLUMN, DATE_COLUMNS, SITE_CODE_COLUMNS,
    SPACECRAFT_MARKERS, SPACECRAFT_OBS_MARKER, HST_LAUNCH_JD,
    MIN_VALID_MONTH, MAX_VALID_MONTH
)

log = logging.getLogger(__name__)


def strip_line_ending(line: str) -> str:
    """Remove a trailing LF/CR terminator, leaving the record columns alone."""
    return line.rstrip('\r\n')


def get_site_code(line: str) -> str:
    """Return the three-character site code in columns 77-79."""
    start, end = SITE_CODE_COLUMNS
    return line[start:end]


def extract_utc_jd(line: str) -> Optional[float]:
    """
    Read the observation date from columns 15-31 as a UTC Julian Date.

    The date is written as ``YYYY MM DD.dddddd``, with the day carrying the
    fraction. A day past the end of its month is rejected rather than rolled
    over into the next one.

    Args:
        line: MPC observation record

    Returns:
        Julian Date (UTC), or None if the columns do not hold a valid date
    """
    start, end = DATE_COLUMNS
    fields = line[start:end].split()
    if len(fields) != 3:
        return None
    try:
        year = int(fields[0])
        month = int(fields[1])
        day = float(fields[2])
    except ValueError:
        return None
    if not (MIN_VALID_MONTH <= month <= MAX_VALID_MONTH):
        return None
    days_in_month = calendar.monthrange(year, month)[1]
    if not (1.0 <= day < days_in_month + 1.0):
        return None

    try:
        month_start = Time(f"{year:04d}-{month:02d}-01", format='iso', scale='utc')
    except ValueError:
        return None
    return month_start.jd + (day - 1.0)


def get_sat_obs_jd(line: str) -> Optional[float]:
    """
    Return the TDB Julian Date of a spacecraft observation or offset line.

    The record must be a full 80-column line with 'S' or 's' in column 14.
    Dates before the launch of HST are rejected; no spacecraft astrometry is
    that old, so such a date means the line is not what it looks like.

    Args:
        line: Input record, with or without its line terminator

    Returns:
        Epoch as JD (TDB), or None if the line is not a spacecraft record
    """
    line = strip_line_ending(line)
    if len(line) < MPC_RECORD_LENGTH or line[NOTE2_COLUMN] not in SPACECRAFT_MARKERS:
        return None

    jd_utc = extract_utc_jd(line)
    if jd_utc is None or jd_utc < HST_LAUNCH_JD:
        return None

    return Time(jd_utc, format='jd', scale='utc').tdb.jd


def is_spacecraft_observation(line: str) -> bool:
    """True for raw 'S' observation lines (not 's' offset lines)."""
    line = strip_line_ending(line)
    return len(line) > NOTE2_COLUMN and line[NOTE2_COLUMN] == SPACECRAFT_OBS_MARKER


def scan_observations(lines: Iterable[str]) -> List[OffsetRequest]:
    """
    First pass: collect one offset request per spacecraft observation.

    Args:
        lines: Input records, read lazily

    Returns:
        Pending requests in order of appearance
    """
    requests = []
    for line in lines:
        if not is_spacecraft_observation(line):
            continue
        jd = get_sat_obs_jd(line)
        if jd is None:
            continue
        request = OffsetRequest(epoch=jd, site_code=get_site_code(strip_line_ending(line)))
        log.debug(f"Sat obs: {jd:.5f} ({request.site_code})")
        requests.append(request)

    log.info(f"Found {len(requests)} spacecraft observations")
    return requests
