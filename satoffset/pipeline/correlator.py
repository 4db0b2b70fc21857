# satoffset/pipeline/correlator.py
"""
Correlation of ephemeris frames with waiting offset requests.

Frames are matched to requests by site code and epoch closeness rather than
by position in the batch, since Horizons may drop, reorder or merge epochs.
"""

import logging
from bisect import bisect_left
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from ..data.source import OffsetRequest, EphemerisTuple
from ..config import EPOCH_MATCH_TOLERANCE_DAYS, SITE_CODE_LENGTH

log = logging.getLogger(__name__)


def epochs_match(epoch_a: float, epoch_b: float) -> bool:
    """True if two epochs agree to within EPOCH_MATCH_TOLERANCE_DAYS."""
    return abs(epoch_a - epoch_b) < EPOCH_MATCH_TOLERANCE_DAYS


def same_site(code_a: str, code_b: str) -> bool:
    return code_a[:SITE_CODE_LENGTH] == code_b[:SITE_CODE_LENGTH]


def correlate(batch: List[OffsetRequest], frames: Iterable[EphemerisTuple], site_code: str) -> int:
    """
    Resolve pending requests of a batch from the returned frames.

    Every pending request with the batch's site code whose epoch is within
    tolerance of a frame takes that frame's state vector. Several requests
    may resolve from the same frame.

    Args:
        batch: Requests that were included in the query
        frames: Parsed response frames
        site_code: Site code the query was made for

    Returns:
        Number of requests resolved
    """
    n_resolved = 0
    for frame in frames:
        for request in batch:
            if (request.is_pending and same_site(request.site_code, site_code)
                    and epochs_match(request.epoch, frame.epoch)):
                request.resolve(frame.position, frame.velocity)
                n_resolved += 1
    log.debug(f"Resolved {n_resolved} of {len(batch)} requests for {site_code}")
    return n_resolved


def abandon_unresolved(batch: List[OffsetRequest]) -> List[OffsetRequest]:
    """
    Abandon every request of a finished batch that is still pending.

    Abandoned requests are never queried again during the run, even if a
    later batch for the same site code could answer them. This keeps a
    failing request from being sent over and over.

    Returns:
        The requests that were abandoned
    """
    abandoned = [request for request in batch if request.is_pending]
    for request in abandoned:
        request.abandon()
    return abandoned


class ResolvedIndex:
    """
    Lookup of resolved requests by site code and epoch for the rewrite pass.

    Each site's requests are kept sorted by epoch, so a lookup only visits
    the requests inside the tolerance window around the epoch asked for.
    """

    def __init__(self, requests: Iterable[OffsetRequest]):
        by_site: Dict[str, List[Tuple[float, int, OffsetRequest]]] = defaultdict(list)
        for order, request in enumerate(requests):
            if request.is_resolved:
                by_site[request.site_code[:SITE_CODE_LENGTH]].append((request.epoch, order, request))

        self._epochs: Dict[str, List[float]] = {}
        self._entries: Dict[str, List[Tuple[float, int, OffsetRequest]]] = {}
        for site_code, entries in by_site.items():
            entries.sort(key=lambda entry: (entry[0], entry[1]))
            self._entries[site_code] = entries
            self._epochs[site_code] = [entry[0] for entry in entries]

    def find(self, site_code: str, epoch: float) -> Optional[OffsetRequest]:
        """Return the earliest-found resolved request matching the code and epoch, if any."""
        key = site_code[:SITE_CODE_LENGTH]
        epochs = self._epochs.get(key)
        if not epochs:
            return None

        entries = self._entries[key]
        best = None
        i = bisect_left(epochs, epoch - EPOCH_MATCH_TOLERANCE_DAYS)
        while i < len(epochs) and epochs[i] < epoch + EPOCH_MATCH_TOLERANCE_DAYS:
            _, order, request = entries[i]
            if epochs_match(request.epoch, epoch) and (best is None or order < best[0]):
                best = (order, request)
            i += 1
        return best[1] if best is not None else None
