"""
MPC-style spacecraft offset ('s' line) encoding.

The signs of the x, y, z offsets are stored in columns 34, 46 and 58;
|x| in columns 35-44, |y| in 47-56, |z| in 59-68 (all 0-based).

If the greatest offset is at most 9999999 km, the offsets are stored in km
and column 32 holds '1'. Offsets up to 99999 km carry four decimals, up to
999999 km three, larger ones two. Under 10000 km there is a blank between
the sign and the value.

Otherwise the offsets are stored in AU and column 32 holds '2'. Offsets
over 9.9 AU (New Horizons) drop to seven decimals; smaller ones keep eight.
This handles any offset below 100 AU.

Examples of the possible formats:

     LTMQ6Ga  s2019 06 26.2809121 -66851.9880 +403817.120 + 9373.8070   NEOCPC57
     K20K42H  s2020 12 25.5287142 +14.3956075 -44.6290151 -17.5105651   ~5zHCC54
    CK10Y100 Gs2010 12 18.42987 2 -1.01982175 -0.76936943 -0.33509167   84456C49
z9987K06UJ8Y  s2019 07 26.2427421 + 551363.13 -1190783.85 - 650915.72   ~3GcZ258
"""

from typing import Sequence

import astropy.units as u
import numpy as np

from ..exceptions import OffsetEncodingError
from ..config import (
    MPC_RECORD_LENGTH, NOTE2_COLUMN, UNIT_FLAG_COLUMN, OFFSET_BLANK_RANGE,
    OFFSET_FIELDS_START, OFFSET_FIELD_STRIDE, SPACECRAFT_OFFSET_MARKER,
    KM_UNIT_FLAG, AU_UNIT_FLAG, MAX_KM_OFFSET, AU_SEVEN_DIGIT_THRESHOLD,
    KM_THREE_DIGIT_THRESHOLD, KM_TWO_DIGIT_THRESHOLD, OFFSET_MAGNITUDE_WIDTH,
    VELOCITY_COMMENT_PREFIX, VELOCITY_TIMESTAMP_COLUMNS, SITE_CODE_LENGTH
)

AU_IN_KM = (1 * u.au).to(u.km).value


def needs_au_units(xyz: Sequence[float]) -> bool:
    """True if any component is too large to be written in km."""
    return bool(np.any(np.abs(np.asarray(xyz, dtype=float)) > MAX_KM_OFFSET))


def _format_au_magnitude(value_au: float) -> str:
    if value_au > AU_SEVEN_DIGIT_THRESHOLD:
        return f"{value_au:10.7f}"
    return f"{value_au:10.8f}"


def _format_km_magnitude(value_km: float) -> str:
    if value_km > KM_TWO_DIGIT_THRESHOLD:
        return f"{value_km:10.2f}"
    elif value_km > KM_THREE_DIGIT_THRESHOLD:
        return f"{value_km:10.3f}"
    return f"{value_km:10.4f}"


def format_offset_fields(xyz: Sequence[float]) -> str:
    """
    Format the unit flag and the three signed offset fields (columns 32-69).

    Args:
        xyz: Geocentric position in km

    Returns:
        38-character string starting with the unit flag

    Raises:
        OffsetEncodingError: If a magnitude does not fit its 10-column field
    """
    output_in_au = needs_au_units(xyz)
    unit_flag = AU_UNIT_FLAG if output_in_au else KM_UNIT_FLAG
    fields = [unit_flag.ljust(OFFSET_FIELDS_START - UNIT_FLAG_COLUMN)]

    for component in xyz:
        sign = '+' if component > 0. else '-'
        magnitude = abs(float(component))
        if output_in_au:
            text = _format_au_magnitude(magnitude / AU_IN_KM)
        else:
            text = _format_km_magnitude(magnitude)
        if len(text) != OFFSET_MAGNITUDE_WIDTH:
            raise OffsetEncodingError(f"Offset {component} km does not fit the MPC offset columns")
        fields.append((sign + text).ljust(OFFSET_FIELD_STRIDE))

    return ''.join(fields)


def set_mpc_style_offsets(line: str, xyz: Sequence[float]) -> str:
    """
    Turn an 'S' observation line into the matching 's' offset line.

    Column 14 becomes 's', columns 32-71 are replaced by the unit flag and
    the offsets, and everything from column 72 on is kept.

    Args:
        line: 80-column 'S' observation record, without line terminator
        xyz: Geocentric position of the spacecraft in km

    Returns:
        The offset record

    Raises:
        OffsetEncodingError: If the line is too short or the offsets do not fit
    """
    if len(line) < MPC_RECORD_LENGTH:
        raise OffsetEncodingError(f"Record has {len(line)} columns, need {MPC_RECORD_LENGTH}")

    blank_end = OFFSET_BLANK_RANGE[1]
    body = format_offset_fields(xyz).ljust(blank_end - UNIT_FLAG_COLUMN)

    return (line[:NOTE2_COLUMN] + SPACECRAFT_OFFSET_MARKER
            + line[NOTE2_COLUMN + 1:UNIT_FLAG_COLUMN]
            + body + line[blank_end:])


def format_velocity_comment(line: str, velocity: Sequence[float], site_code: str) -> str:
    """
    Build the 'COM vel (km/s)' line written ahead of a regenerated observation.

    Args:
        line: The 'S' observation record
        velocity: Geocentric velocity in km/s
        site_code: Site code of the spacecraft

    Returns:
        Comment line without terminator
    """
    start, end = VELOCITY_TIMESTAMP_COLUMNS
    vx, vy, vz = (float(v) for v in velocity)
    return (f"{VELOCITY_COMMENT_PREFIX}{line[start:end]}"
            f"{vx:+13.7f}{vy:+13.7f}{vz:+13.7f} {site_code[:SITE_CODE_LENGTH]}")
