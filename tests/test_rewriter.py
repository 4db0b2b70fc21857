# tests/test_rewriter.py
"""Tests for the second pass that inserts offset records."""

import logging

import numpy as np

from satoffset.records.rewriter import rewrite_stream
from satoffset.records.scanner import get_sat_obs_jd
from satoffset.records.encoder import AU_IN_KM
from satoffset.data.source import OffsetRequest

NEW_HORIZONS_XYZ = np.array([14.3956075, -44.6290151, -17.5105651]) * AU_IN_KM
NEW_HORIZONS_VEL = np.array([1.2345678, -2.5, 0.25])


def make_obs_line(date="2020 12 25.695728", site_code="C54", marker="S"):
    """Build an 80-column observation record with the given date, code and note."""
    line = (f"{'':5}{'K20K42H':7}  {marker}{date:17}{'14 45 21.50':12}{'+04 41 41.2':12}"
            f"{'':9}{'':5}V ~5zHC{site_code}")
    assert len(line) == 80
    return line


def resolved_request(line, position=NEW_HORIZONS_XYZ, velocity=NEW_HORIZONS_VEL):
    request = OffsetRequest(get_sat_obs_jd(line), line[77:80])
    request.resolve(position, velocity)
    return request


def abandoned_request(line):
    request = OffsetRequest(get_sat_obs_jd(line), line[77:80])
    request.abandon()
    return request


class TestRewriteStream:
    """Tests for rewrite_stream."""

    def test_resolved_observation_becomes_three_lines(self):
        obs = make_obs_line()
        output = list(rewrite_stream(["COD C54\n", obs + "\n"], [resolved_request(obs)]))

        assert len(output) == 4
        assert output[0] == "COD C54"
        assert output[1].startswith("COM vel (km/s) 2020 12 25.69572")
        assert output[1].endswith(" C54")
        assert output[2] == obs
        assert output[3][14] == 's'
        assert output[3][32:70] == "2 +14.3956075 -44.6290151 -17.5105651 "

    def test_unresolved_lines_pass_through(self):
        obs = make_obs_line(site_code="ZZZ")
        lines = ["COD ZZZ\n", obs + "\n", make_obs_line(marker="C") + "\n"]

        output = list(rewrite_stream(lines, [abandoned_request(obs)]))

        assert output == [line.rstrip("\n") for line in lines]

    def test_line_terminators_are_removed(self):
        lines = ["COM one\r\n", "COM two\n", "COM three"]
        assert list(rewrite_stream(lines, [])) == ["COM one", "COM two", "COM three"]

    def test_existing_offset_line_is_replaced(self):
        obs = make_obs_line()
        stale = make_obs_line(marker="s")
        request = resolved_request(obs)

        output = list(rewrite_stream([obs, stale], [request]))

        assert len(output) == 3
        assert stale not in output
        assert output[2][32] == '2'

    def test_existing_offset_line_kept_when_not_regenerated(self):
        obs = make_obs_line(site_code="C57")
        stale = make_obs_line(marker="s", site_code="C57")

        output = list(rewrite_stream([obs, stale], [abandoned_request(obs)]))

        assert output == [obs, stale]

    def test_existing_velocity_comment_is_replaced(self):
        obs = make_obs_line()
        old_comment = "COM vel (km/s) 2020 12 25.69572   +9.0000000   +9.0000000   +9.0000000 C54"

        output = list(rewrite_stream([old_comment, obs], [resolved_request(obs)]))

        assert old_comment not in output
        assert output[0].startswith("COM vel (km/s) ")
        assert "+1.2345678" in output[0]

    def test_velocity_comment_kept_when_not_followed_by_regenerated_line(self):
        old_comment = "COM vel (km/s) 2020 12 25.69572   +9.0000000   +9.0000000   +9.0000000 C54"
        assert list(rewrite_stream([old_comment, "COD C54"], [])) == [old_comment, "COD C54"]
        assert list(rewrite_stream([old_comment], [])) == [old_comment]

    def test_duplicate_observations_both_regenerated(self):
        obs = make_obs_line()
        output = list(rewrite_stream([obs, obs], [resolved_request(obs), resolved_request(obs)]))
        assert len(output) == 6

    def test_unencodable_offset_passes_through(self, caplog):
        obs = make_obs_line()
        request = resolved_request(obs, position=[150.0 * AU_IN_KM, 0.0, 0.0])

        with caplog.at_level(logging.WARNING):
            output = list(rewrite_stream([obs], [request]))

        assert output == [obs]
        assert "Could not encode offset" in caplog.text
