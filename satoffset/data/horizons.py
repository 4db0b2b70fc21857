"""
JPL Horizons batch queries for spacecraft state vectors.

Builds size-bounded TLIST requests, fetches them with aiohttp, and parses the
text vector tables that come back. A request for four epochs of WISE looks
like (split over several lines here):

    https://ssd.jpl.nasa.gov/api/horizons.api?format=text&COMMAND='-163'
    &CENTER='500@399'&REF_PLANE='FRAME'&OBJ_DATA='NO'&MAKE_EPHEM='YES'
    &TABLE_TYPE='V'&TLIST_TYPE='JD'&TLIST=
    '2458843.421181','2458843.486631','2458843.551951','2458843.616891'
    &VEC_TABLE='2'&VEC_LABELS='N'&OUT_UNITS='KM-S'
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import aiohttp

from .source import EphemerisSource, EphemerisTuple
from ..exceptions import (
    EphemerisTransportError, EphemerisParseError, EphemerisUnavailableError
)
from ..config import (
    HORIZONS_API_URL, HORIZONS_CENTER, HORIZONS_REF_PLANE, HORIZONS_TABLE_TYPE,
    HORIZONS_VEC_TABLE, HORIZONS_OUT_UNITS, HORIZONS_TIMEOUT_SECONDS,
    HORIZONS_USER_AGENT, HORIZONS_MAX_QUERY_BYTES, HORIZONS_EPOCH_BYTES,
    HORIZONS_MAX_EPOCHS_PER_QUERY, HORIZONS_EPOCH_FORMAT,
    HORIZONS_EPOCH_HEADER_MARKERS, HORIZONS_NO_EPHEMERIS_MARKER
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HorizonsQuery:
    """A single batch request: one object, up to a few hundred epochs."""
    horizons_id: int
    epochs: Tuple[float, ...]
    url: str

    @property
    def size(self) -> int:
        """Serialized size of the request in bytes."""
        return len(self.url)


def _query_header(horizons_id: int) -> str:
    return (f"{HORIZONS_API_URL}?format=text&COMMAND='{horizons_id}'"
            f"&CENTER='{HORIZONS_CENTER}'&REF_PLANE='{HORIZONS_REF_PLANE}'"
            f"&OBJ_DATA='NO'&MAKE_EPHEM='YES'&TABLE_TYPE='{HORIZONS_TABLE_TYPE}'"
            f"&TLIST_TYPE='JD'&TLIST=")


def _query_trailer() -> str:
    return (f"&VEC_TABLE='{HORIZONS_VEC_TABLE}'&VEC_LABELS='N'"
            f"&OUT_UNITS='{HORIZONS_OUT_UNITS}'")


def _format_epoch(epoch: float) -> str:
    return "'" + HORIZONS_EPOCH_FORMAT.format(epoch) + "'"


def max_epochs_per_query(horizons_id: int) -> int:
    """
    Maximum number of epochs that fit in one request for an object.

    n epochs serialize to n * HORIZONS_EPOCH_BYTES - 1 bytes (no comma after
    the last one), on top of the fixed header and trailer.
    """
    room = HORIZONS_MAX_QUERY_BYTES - len(_query_header(horizons_id)) - len(_query_trailer())
    by_size = (room + 1) // HORIZONS_EPOCH_BYTES
    return max(0, min(by_size, HORIZONS_MAX_EPOCHS_PER_QUERY))


def build_query(horizons_id: int, epochs: Iterable[float]) -> HorizonsQuery:
    """
    Build a batch query holding as many of the epochs as fit.

    Epochs are taken in order; the first one that would push the request
    past HORIZONS_MAX_QUERY_BYTES (or past the epoch ceiling) ends the batch,
    and it and the rest are left for a later query.

    Args:
        horizons_id: Horizons object id of the spacecraft
        epochs: Candidate epochs (JD, TDB) in order of first appearance

    Returns:
        HorizonsQuery whose epochs are a prefix of the candidates
    """
    header = _query_header(horizons_id)
    trailer = _query_trailer()
    limit = max_epochs_per_query(horizons_id)
    size = len(header) + len(trailer)
    items: List[str] = []
    accepted: List[float] = []

    for epoch in epochs:
        if len(accepted) >= limit:
            break
        item = _format_epoch(epoch)
        cost = len(item) + (1 if items else 0)
        if size + cost > HORIZONS_MAX_QUERY_BYTES:
            break
        items.append(item)
        accepted.append(epoch)
        size += cost

    url = header + ",".join(items) + trailer
    return HorizonsQuery(horizons_id=horizons_id, epochs=tuple(accepted), url=url)


def _is_epoch_header(line: str) -> bool:
    return all(marker in line for marker in HORIZONS_EPOCH_HEADER_MARKERS)


def _parse_vector_line(line: Optional[str], epoch: float, kind: str) -> Tuple[float, float, float]:
    if line is None:
        raise EphemerisParseError(f"Missing {kind} line after epoch {epoch}")
    fields = line.split()
    if len(fields) < 3:
        raise EphemerisParseError(f"Expected three {kind} components at epoch {epoch}, got '{line.strip()}'")
    try:
        return float(fields[0]), float(fields[1]), float(fields[2])
    except ValueError as e:
        raise EphemerisParseError(f"Non-numeric {kind} at epoch {epoch}: '{line.strip()}'") from e


def parse_vector_response(text: str) -> List[EphemerisTuple]:
    """
    Parse a Horizons text vector table into state-vector frames.

    Each frame starts with an epoch header such as
    ``2458843.421181000 = A.D. 2019-Dec-22 22:06:29.0384 TDB`` and the next
    two non-empty lines give position (km) and velocity (km/s).

    Args:
        text: Raw response text

    Returns:
        Frames in response order

    Raises:
        EphemerisParseError: If a frame is missing or has malformed vector lines
        EphemerisUnavailableError: If the service reports no ephemeris
    """
    frames = []
    lines = iter(text.splitlines())

    for line in lines:
        if _is_epoch_header(line):
            try:
                epoch = float(line.split()[0])
            except (IndexError, ValueError) as e:
                raise EphemerisParseError(f"Unreadable epoch header '{line.strip()}'") from e
            log.debug(f"Found locations: {line.strip()}")

            position = _parse_vector_line(next((l for l in lines if l.strip()), None), epoch, 'position')
            velocity = _parse_vector_line(next((l for l in lines if l.strip()), None), epoch, 'velocity')
            frames.append(EphemerisTuple(epoch, position, velocity))
        elif line.startswith(HORIZONS_NO_EPHEMERIS_MARKER):
            raise EphemerisUnavailableError(line.strip())
        else:
            log.debug(line)

    return frames


class HorizonsClient(EphemerisSource):
    """Ephemeris source backed by the JPL Horizons API."""

    def __init__(self, session: aiohttp.ClientSession,
                 timeout: float = HORIZONS_TIMEOUT_SECONDS):
        """
        Initialize the Horizons client.

        Args:
            session: aiohttp ClientSession for making HTTP requests
            timeout: Total timeout in seconds for one batch request
        """
        self.session = session
        self.timeout = timeout

    async def fetch_vectors(self, query: HorizonsQuery) -> str:
        """Issue one batch query and return the response text."""
        log.info(f"Requesting {len(query.epochs)} positions for Horizons object {query.horizons_id}")
        log.debug(query.url)
        try:
            async with self.session.get(
                query.url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'User-Agent': HORIZONS_USER_AGENT}
            ) as response:
                response.raise_for_status()
                return await response.text()
        except asyncio.TimeoutError as e:
            raise EphemerisTransportError(
                f"Horizons request for object {query.horizons_id} timed out after {self.timeout} s"
            ) from e
        except aiohttp.ClientError as e:
            raise EphemerisTransportError(
                f"Horizons request for object {query.horizons_id} failed: {e}"
            ) from e
