# tests/test_scanner.py
import pytest
import numpy as np

from satoffset.records.scanner import (
    get_sat_obs_jd, extract_utc_jd, scan_observations, get_site_code,
    is_spacecraft_observation, strip_line_ending
)
from satoffset.data.source import RequestState
from satoffset.config import HST_LAUNCH_JD

TT_MINUS_UTC_2020_DAYS = 69.184 / 86400.0


def make_obs_line(date="2020 12 25.695728", site_code="C54", marker="S"):
    """Build an 80-column observation record with the given date, code and note."""
    line = (f"{'':5}{'K20K42H':7}  {marker}{date:17}{'14 45 21.50':12}{'+04 41 41.2':12}"
            f"{'':9}{'':5}V ~5zHC{site_code}")
    assert len(line) == 80
    return line


class TestDateExtraction:
    """Tests for reading the observation date columns."""

    def test_extract_utc_jd_known_date(self):
        """2020 Dec 25.0 UTC is JD 2459208.5."""
        jd = extract_utc_jd(make_obs_line(date="2020 12 25.000000"))
        assert np.isclose(jd, 2459208.5, atol=1e-9)

    def test_extract_utc_jd_keeps_day_fraction(self):
        jd = extract_utc_jd(make_obs_line(date="2020 12 25.695728"))
        assert np.isclose(jd, 2459209.195728, atol=1e-8)

    @pytest.mark.parametrize("date", [
        "2020 13 25.695728",   # month out of range
        "2020 12 xx.695728",   # garbage day
        "                 ",   # blank
        "2020-12-25.695728",   # wrong separators
    ])
    def test_extract_utc_jd_rejects_malformed_dates(self, date):
        assert extract_utc_jd(make_obs_line(date=date)) is None

    @pytest.mark.parametrize("date", [
        "2020 02 30.500000",   # no Feb 30
        "2019 02 29.500000",   # not a leap year
        "2020 04 31.000000",   # April has 30 days
        "2020 12 32.100000",
    ])
    def test_extract_utc_jd_rejects_days_past_month_end(self, date):
        assert extract_utc_jd(make_obs_line(date=date)) is None

    def test_extract_utc_jd_accepts_last_day_of_month(self):
        """2020 Feb 29.5 is leap day noon, JD 2458909.0."""
        assert np.isclose(extract_utc_jd(make_obs_line(date="2020 02 29.500000")), 2458909.0, atol=1e-8)
        assert extract_utc_jd(make_obs_line(date="2020 12 31.999999")) is not None


class TestGetSatObsJd:
    """Tests for spacecraft observation epoch derivation."""

    def test_returns_tdb_epoch(self):
        """The epoch is shifted from UTC to TDB (about 69.184 s in 2020)."""
        jd = get_sat_obs_jd(make_obs_line(date="2020 12 25.695728"))
        assert jd is not None
        assert np.isclose(jd - 2459209.195728, TT_MINUS_UTC_2020_DAYS, atol=1e-7)

    def test_offset_lines_also_have_epochs(self):
        assert get_sat_obs_jd(make_obs_line(marker="s")) is not None

    def test_ignores_line_terminator(self):
        line = make_obs_line()
        assert get_sat_obs_jd(line + "\n") == get_sat_obs_jd(line)
        assert get_sat_obs_jd(line + "\r\n") == get_sat_obs_jd(line)

    def test_non_spacecraft_line(self):
        assert get_sat_obs_jd(make_obs_line(marker="C")) is None

    def test_short_line(self):
        assert get_sat_obs_jd(make_obs_line()[:79]) is None

    def test_comment_line(self):
        assert get_sat_obs_jd("COD 500") is None

    def test_rejects_dates_before_hst_launch(self):
        """Anything before 1990 April 24 cannot be a spacecraft observation."""
        assert get_sat_obs_jd(make_obs_line(date="1990 04 23.990000")) is None
        assert get_sat_obs_jd(make_obs_line(date="1985 06 01.500000")) is None

    def test_accepts_dates_after_hst_launch(self):
        jd = get_sat_obs_jd(make_obs_line(date="1990 04 24.100000"))
        assert jd is not None
        assert jd > HST_LAUNCH_JD


class TestScanObservations:
    """Tests for the first pass over the record stream."""

    def test_collects_spacecraft_observations_in_order(self):
        lines = [
            "COD C54\n",
            make_obs_line(date="2020 12 25.695728", site_code="C54") + "\n",
            make_obs_line(date="2019 07 09.155906", site_code="C57") + "\n",
            make_obs_line(marker="C", site_code="703") + "\n",
        ]
        requests = scan_observations(lines)

        assert [r.site_code for r in requests] == ["C54", "C57"]
        assert all(r.state is RequestState.PENDING for r in requests)
        assert all(not r.position.any() for r in requests)
        assert requests[0].epoch > requests[1].epoch

    def test_skips_existing_offset_lines(self):
        lines = [make_obs_line(marker="S"), make_obs_line(marker="s")]
        assert len(scan_observations(lines)) == 1

    def test_skips_pre_hst_observations(self):
        lines = [make_obs_line(date="1989 01 01.500000")]
        assert scan_observations(lines) == []

    def test_accepts_a_generator(self):
        lines = (make_obs_line(site_code=code) for code in ["C54", "C54", "250"])
        assert [r.site_code for r in scan_observations(lines)] == ["C54", "C54", "250"]


def test_get_site_code():
    assert get_site_code(make_obs_line(site_code="258")) == "258"


def test_is_spacecraft_observation():
    assert is_spacecraft_observation(make_obs_line(marker="S"))
    assert not is_spacecraft_observation(make_obs_line(marker="s"))
    assert not is_spacecraft_observation("COM short")


def test_strip_line_ending_keeps_trailing_spaces():
    assert strip_line_ending("abc  \r\n") == "abc  "
