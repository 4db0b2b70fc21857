from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Sequence

import numpy as np


class RequestState(Enum):
    """Lifecycle of an offset request within one run."""
    PENDING = "Pending"
    RESOLVED = "Resolved"
    ABANDONED = "Abandoned"


def _zero_vector() -> np.ndarray:
    return np.zeros(3)


@dataclass
class OffsetRequest:
    """One spacecraft observation waiting for its geocentric offset.

    Args:
        epoch: Observation time as a Julian Date in TDB
        site_code: Three-character MPC site code of the spacecraft
        state: Current lifecycle state
        position: Geocentric position in km (zero until resolved)
        velocity: Geocentric velocity in km/s (zero until resolved)
    """
    epoch: float
    site_code: str
    state: RequestState = RequestState.PENDING
    position: np.ndarray = field(default_factory=_zero_vector)
    velocity: np.ndarray = field(default_factory=_zero_vector)

    @property
    def is_pending(self) -> bool:
        return self.state is RequestState.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.state is RequestState.RESOLVED

    @property
    def is_abandoned(self) -> bool:
        return self.state is RequestState.ABANDONED

    def resolve(self, position: Sequence[float], velocity: Sequence[float]) -> None:
        """Store the state vector. Only a pending request can be resolved."""
        if not self.is_pending:
            raise ValueError(f"Cannot resolve a request in state {self.state.value}")
        self.position = np.asarray(position, dtype=float)
        self.velocity = np.asarray(velocity, dtype=float)
        self.state = RequestState.RESOLVED

    def abandon(self) -> None:
        """Mark the request as failed for this run; it is never retried."""
        if not self.is_pending:
            raise ValueError(f"Cannot abandon a request in state {self.state.value}")
        self.state = RequestState.ABANDONED


class EphemerisTuple(NamedTuple):
    """A single (epoch, position, velocity) frame from an ephemeris response."""
    epoch: float
    position: tuple
    velocity: tuple


# --- Abstract Base Class ---

class EphemerisSource(ABC):
    """Abstract Base Class for services that return state-vector tables.

    The pipeline only ever awaits one fetch at a time, so implementations
    need not be safe for concurrent use.
    """

    @abstractmethod
    async def fetch_vectors(self, query) -> str:
        """
        Fetch the raw text response for a batch query.

        Args:
            query: HorizonsQuery describing the object and epochs

        Returns:
            Response text containing the state-vector frames

        Raises:
            EphemerisTransportError: If the service cannot be reached
        """
        pass
