"""
Custom exceptions for satoffset.

This module defines domain-specific exceptions used throughout the application
to provide clear error context and enable precise error handling.
"""


class SatOffsetError(Exception):
    """Base exception for all satoffset-specific errors."""
    pass


class ConfigurationError(SatOffsetError):
    """Raised when command-line or runtime configuration is invalid."""
    pass


class InputFileError(SatOffsetError):
    """Raised when the astrometry input file cannot be opened or decoded."""
    pass


class UnknownSiteCodeError(SatOffsetError):
    """Raised when a site code has no Horizons cross-reference."""

    def __init__(self, site_code: str):
        self.site_code = site_code
        super().__init__(f"MPC code '{site_code}' wasn't found")


class OffsetEncodingError(SatOffsetError):
    """Raised when an offset cannot be written into the fixed MPC columns."""
    pass


class EphemerisError(SatOffsetError):
    """Base exception for failures of a single ephemeris batch."""
    pass


class EphemerisTransportError(EphemerisError):
    """Raised when the ephemeris service cannot be reached or returns an HTTP error."""
    pass


class EphemerisParseError(EphemerisError):
    """Raised when an ephemeris response frame is missing its vector lines."""
    pass


class EphemerisUnavailableError(EphemerisError):
    """Raised when the service reports that no ephemeris is available."""
    pass


__all__ = [
    'SatOffsetError',
    'ConfigurationError',
    'InputFileError',
    'UnknownSiteCodeError',
    'OffsetEncodingError',
    'EphemerisError',
    'EphemerisTransportError',
    'EphemerisParseError',
    'EphemerisUnavailableError',
]
