"""
Second pass over the astrometry: insert regenerated offset records.

Every line is passed through in order, except that each spacecraft
observation with a resolved offset is written as

    COM vel (km/s) ...     (velocity comment)
    ...S...                (original observation, unchanged)
    ...s...                (new offset record)

Offset and velocity lines already present for such an observation are
dropped in favour of the new ones; all others are kept, so a file that has
already been through a run comes out the same.
"""

import logging
from typing import Iterable, Iterator, List, Optional

from .encoder import set_mpc_style_offsets, format_velocity_comment
from .scanner import strip_line_ending, get_sat_obs_jd, get_site_code
from ..data.source import OffsetRequest
from ..pipeline.correlator import ResolvedIndex
from ..exceptions import OffsetEncodingError
from ..config import (
    NOTE2_COLUMN, SPACECRAFT_OBS_MARKER, SPACECRAFT_OFFSET_MARKER,
    VELOCITY_COMMENT_PREFIX
)

log = logging.getLogger(__name__)


def _regenerate(line: str, request: OffsetRequest) -> Optional[List[str]]:
    try:
        offset_line = set_mpc_style_offsets(line, request.position)
    except OffsetEncodingError as e:
        log.warning(f"Could not encode offset for {request.site_code} at JD {request.epoch:.6f}: {e}")
        return None
    return [format_velocity_comment(line, request.velocity, request.site_code), line, offset_line]


def rewrite_stream(lines: Iterable[str], requests: Iterable[OffsetRequest]) -> Iterator[str]:
    """
    Rewrite the record stream with offsets from the resolved requests.

    Args:
        lines: The original input lines, in order
        requests: Requests from the first pass after resolution

    Yields:
        Output lines without terminators
    """
    index = ResolvedIndex(requests)
    held_comment = None

    for raw_line in lines:
        line = strip_line_ending(raw_line)
        jd = get_sat_obs_jd(line)
        request = index.find(get_site_code(line), jd) if jd is not None else None

        output = None
        if request is not None and line[NOTE2_COLUMN] == SPACECRAFT_OBS_MARKER:
            output = _regenerate(line, request)

        if held_comment is not None:
            if output is None:
                yield held_comment
            held_comment = None

        if line.startswith(VELOCITY_COMMENT_PREFIX):
            held_comment = line
        elif output is not None:
            yield from output
        elif jd is not None and line[NOTE2_COLUMN] == SPACECRAFT_OFFSET_MARKER and request is not None:
            # replaced by the record generated from its observation
            continue
        else:
            yield line

    if held_comment is not None:
        yield held_comment
