"""
Cross-reference between MPC spacecraft site codes and JPL Horizons object ids.
"""

from typing import Optional

from ..config import SPACECRAFT_XREF, SITE_CODE_LENGTH
from ..exceptions import UnknownSiteCodeError


def get_horizons_id(site_code: str) -> Optional[int]:
    """
    Look up the Horizons object id for a spacecraft site code.

    Only the first three characters are compared, so a trailing
    discriminator character is ignored.

    Args:
        site_code: MPC site code, optionally with a fourth character

    Returns:
        Horizons object id, or None if the code is not a known spacecraft
    """
    if not site_code:
        return None
    return SPACECRAFT_XREF.get(site_code[:SITE_CODE_LENGTH])


def require_horizons_id(site_code: str) -> int:
    """Like get_horizons_id, but raises UnknownSiteCodeError for unknown codes."""
    horizons_id = get_horizons_id(site_code)
    if horizons_id is None:
        raise UnknownSiteCodeError(site_code)
    return horizons_id
