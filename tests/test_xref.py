# tests/test_xref.py
import pytest

from satoffset.data.xref import get_horizons_id, require_horizons_id
from satoffset.exceptions import UnknownSiteCodeError
from satoffset import config


class TestGetHorizonsId:
    """Tests for the site code to Horizons id lookup."""

    @pytest.mark.parametrize("site_code,expected", [
        ("C54", -98),       # New Horizons
        ("250", -48),       # Hubble
        ("258", -139479),   # Gaia
        ("C51", -163),      # WISE
        ("274", -170),      # JWST
        ("PSP", -96),       # Parker Solar Probe
    ])
    def test_known_spacecraft(self, site_code, expected):
        assert get_horizons_id(site_code) == expected

    def test_fourth_character_is_ignored(self):
        assert get_horizons_id("C54x") == -98
        assert get_horizons_id("250 ") == -48

    def test_unknown_code(self):
        assert get_horizons_id("ZZZ") is None

    def test_empty_code(self):
        assert get_horizons_id("") is None

    def test_comparison_is_case_sensitive(self):
        assert get_horizons_id("cas") is None
        assert get_horizons_id("Cas") == -82


def test_require_horizons_id_raises_for_unknown_code():
    with pytest.raises(UnknownSiteCodeError, match="ZZZ") as exc_info:
        require_horizons_id("ZZZ")
    assert exc_info.value.site_code == "ZZZ"


def test_xref_table_is_well_formed():
    """Every entry is a three-character code mapped to a negative spacecraft id."""
    assert len(config.SPACECRAFT_XREF) == 18
    for site_code, horizons_id in config.SPACECRAFT_XREF.items():
        assert len(site_code) == config.SITE_CODE_LENGTH
        assert isinstance(horizons_id, int)
        assert horizons_id < 0
    assert len(set(config.SPACECRAFT_XREF.values())) == len(config.SPACECRAFT_XREF)
