# satoffset/pipeline/engine.py
"""
Offset Resolution Engine.

This module contains the engine that resolves spacecraft offsets for a list of
observations and drives the two passes over an astrometry file. It takes the
ephemeris source as a dependency and is independent of CLI concerns.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TextIO

from .correlator import correlate, abandon_unresolved, same_site
from ..data.horizons import build_query, parse_vector_response
from ..data.source import EphemerisSource, OffsetRequest
from ..data.xref import require_horizons_id
from ..records.scanner import scan_observations
from ..records.rewriter import rewrite_stream
from ..utils.io import detect_encoding, iter_records
from ..exceptions import (
    UnknownSiteCodeError, EphemerisTransportError,
    EphemerisParseError, EphemerisUnavailableError
)
from ..config import (
    RUN_BANNER_TEMPLATE, RUN_SUMMARY_TEMPLATE,
    FAILURE_UNKNOWN_SITE_CODE, FAILURE_TRANSPORT, FAILURE_MALFORMED_RESPONSE,
    FAILURE_NO_EPHEMERIS, FAILURE_NOT_IN_RESPONSE
)
from .. import __version__

log = logging.getLogger(__name__)


@dataclass
class RunStats:
    """Counters for one run, owned by whoever started the run."""
    positions_set: int = 0
    positions_failed: int = 0
    queries_made: int = 0
    failures: Dict[str, List[str]] = field(default_factory=lambda: defaultdict(list))

    def record_failures(self, reason: str, requests: List[OffsetRequest]) -> None:
        if not requests:
            return
        self.positions_failed += len(requests)
        site_code = requests[0].site_code
        if site_code not in self.failures[reason]:
            self.failures[reason].append(site_code)


class OffsetRunner:
    """
    Resolves offset requests against an ephemeris source, one batch at a time.

    Requests are handled in the order they were found. The first pending
    request of a site code starts a batch containing it and as many later
    pending requests with the same code as fit in one query; whatever does not
    fit is picked up when the loop reaches it.
    """

    def __init__(self, source: EphemerisSource):
        """
        Initialize the offset runner.

        Args:
            source: Ephemeris source used to fetch state vectors
        """
        self.source = source

    async def resolve_offsets(self, requests: List[OffsetRequest],
                              stats: Optional[RunStats] = None) -> RunStats:
        """
        Resolve every pending request, abandoning those that cannot be.

        Args:
            requests: Requests from the scan pass, in order of appearance
            stats: Accumulator to update; a new one is created if None

        Returns:
            The run statistics
        """
        if stats is None:
            stats = RunStats()

        for i, request in enumerate(requests):
            log.debug(f"{i}: JD {request.epoch:.5f}; code '{request.site_code}'")
            if request.is_pending:
                await self._resolve_batch(requests[i:], stats)

        return stats

    def _abandon_site_code(self, requests: List[OffsetRequest], site_code: str) -> List[OffsetRequest]:
        abandoned = [r for r in requests if r.is_pending and same_site(r.site_code, site_code)]
        for request in abandoned:
            request.abandon()
        return abandoned

    async def _resolve_batch(self, requests: List[OffsetRequest], stats: RunStats) -> None:
        site_code = requests[0].site_code

        try:
            horizons_id = require_horizons_id(site_code)
        except UnknownSiteCodeError as e:
            log.error(f"{e}. Either it's not an MPC code, or it's not one of the spacecraft "
                      f"that satoffset knows about; see SPACECRAFT_XREF in satoffset/config.py.")
            stats.record_failures(FAILURE_UNKNOWN_SITE_CODE, self._abandon_site_code(requests, site_code))
            return

        candidates = [r for r in requests if r.is_pending and same_site(r.site_code, site_code)]
        query = build_query(horizons_id, [r.epoch for r in candidates])
        batch = candidates[:len(query.epochs)]
        log.info(f"Querying Horizons object {horizons_id} ({site_code}) for {len(batch)} "
                 f"of {len(candidates)} pending observations")

        stats.queries_made += 1
        try:
            text = await self.source.fetch_vectors(query)
            frames = parse_vector_response(text)
        except EphemerisTransportError as e:
            log.error(f"Error fetching ephemeris for {site_code}: {e} (cause: {e.__cause__!r})")
            log.debug(f"Failed query: {query.url}")
            stats.record_failures(FAILURE_TRANSPORT, abandon_unresolved(batch))
            return
        except EphemerisUnavailableError as e:
            log.error(f"Horizons has no ephemeris for {site_code} (object {horizons_id}): {e}")
            stats.record_failures(FAILURE_NO_EPHEMERIS, abandon_unresolved(batch))
            return
        except EphemerisParseError as e:
            log.error(f"Malformed Horizons response for {site_code} (object {horizons_id}, "
                      f"{len(batch)} epochs): {e}")
            log.debug(f"Failed query: {query.url}")
            stats.record_failures(FAILURE_MALFORMED_RESPONSE, abandon_unresolved(batch))
            return

        if not frames:
            log.warning(f"No state vectors in Horizons response for {site_code} (object {horizons_id})")

        stats.positions_set += correlate(batch, frames, site_code)
        stats.record_failures(FAILURE_NOT_IN_RESPONSE, abandon_unresolved(batch))


def format_banner(start_time: float) -> str:
    """Leading comment line identifying the program and run time."""
    return RUN_BANNER_TEMPLATE.format(version=__version__, timestamp=time.ctime(start_time))


def format_summary(stats: RunStats, elapsed: float) -> str:
    """Trailing comment line with the success and failure counts."""
    return RUN_SUMMARY_TEMPLATE.format(n_set=stats.positions_set,
                                       n_failed=stats.positions_failed,
                                       elapsed=elapsed)


async def process_file(filepath: str, source: EphemerisSource, out: TextIO,
                       encoding: Optional[str] = None) -> RunStats:
    """
    Add spacecraft offsets to an astrometry file.

    Reads the file once to find spacecraft observations, resolves their
    offsets, then reads it again writing the rewritten stream to `out`,
    framed by a banner and a summary comment.

    Args:
        filepath: Path to the 80-column astrometry file
        source: Ephemeris source for the state vectors
        out: Text stream receiving the output
        encoding: Input encoding, detected from the file if None

    Returns:
        The run statistics

    Raises:
        InputFileError: If the file cannot be opened or decoded
    """
    start_time = time.time()
    if encoding is None:
        encoding = detect_encoding(filepath)

    out.write(format_banner(start_time) + "\n")

    requests = scan_observations(iter_records(filepath, encoding))
    stats = await OffsetRunner(source).resolve_offsets(requests)

    for line in rewrite_stream(iter_records(filepath, encoding), requests):
        out.write(line + "\n")

    out.write(format_summary(stats, time.time() - start_time) + "\n")
    return stats
