"""Tests for csumask.io.target_list -- target list reader and writer."""

import math
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from csumask.errors import FormatError
from csumask.io.target_list import (
    format_target_line,
    read_target_list,
    write_excess_targets,
    write_mask_targets,
    write_target_list,
)
from csumask.model.targets import RaDec, Target

from conftest import SCIENCE_LAYOUT, STAR_LAYOUT


class TestReader:
    """Parsing target list files."""

    def test_synthetic_field(self, target_list_file):
        """Test: Every object is read in file order with its priority."""
        targets = read_target_list(target_list_file)
        layout = SCIENCE_LAYOUT + STAR_LAYOUT
        assert [t.name for t in targets] == [entry[0] for entry in layout]
        assert [t.priority for t in targets] == [entry[1] for entry in layout]
        assert sum(1 for t in targets if t.is_alignment_candidate) == len(STAR_LAYOUT)

    def test_fields(self, tmp_path):
        """Test: Coordinates, magnitude, epoch and equinox are parsed."""
        path = tmp_path / "one.coords"
        path.write_text("obj1  12.5  19.25  10 20 30.5  -05 06 07.8  2000.0  1950.0  0.0 0.0\n")
        (target,) = read_target_list(path)
        assert target.name == "obj1"
        assert target.priority == 12.5
        assert target.magnitude == 19.25
        assert target.ra_dec == RaDec(10.0, 20.0, 30.5, -5.0, 6.0, 7.8)
        assert target.epoch == 2000.0
        assert target.equinox == 1950.0

    def test_negative_zero_dec(self, tmp_path):
        """Test: A '-00' declination stays southern."""
        path = tmp_path / "south.coords"
        path.write_text("s 1 20 01 00 00 -00 30 00 2000 2000\n")
        (target,) = read_target_list(path)
        assert math.copysign(1.0, target.ra_dec.dec_deg) < 0
        assert target.ra_dec.dec_degrees == pytest.approx(-0.5)

    def test_comments_and_blank_lines(self, tmp_path):
        """Test: Comment and blank lines are skipped."""
        path = tmp_path / "commented.coords"
        path.write_text("# header\n\n   \nobj 1 20 01 00 00 +00 30 00 2000 2000\n# tail\n")
        assert [t.name for t in read_target_list(path)] == ["obj"]

    def test_too_few_fields(self, tmp_path):
        """Test: A short line is reported with its line number."""
        path = tmp_path / "short.coords"
        path.write_text("# header\nobj 1 20 01 00 00\n")
        with pytest.raises(FormatError, match="line 2"):
            read_target_list(path)

    def test_non_numeric(self, tmp_path):
        """Test: A non-numeric field is reported with its line number."""
        path = tmp_path / "bad.coords"
        path.write_text("obj high 20 01 00 00 +00 30 00 2000 2000\n")
        with pytest.raises(FormatError, match="line 1"):
            read_target_list(path)


class TestWriter:
    """Writing target list files."""

    def test_line_format(self):
        """Test: Columns are name, priority, magnitude, RA, Dec, epoch, equinox."""
        target = Target(name="obj", priority=3.0, magnitude=18.0,
                        ra_dec=RaDec(1.0, 2.0, 3.0, -0.0, 4.0, 5.0))
        fields = format_target_line(target).split()
        assert fields[0] == "obj"
        assert fields[3:6] == ["01", "02", "03.000"]
        assert fields[6:9] == ["-00", "04", "05.00"]
        assert len(fields) == 13

    def test_round_trip(self, tmp_path, science_targets):
        """Test: Written targets read back with the same values."""
        path = tmp_path / "out.coords"
        assert write_target_list(science_targets, path) == len(science_targets)
        back = read_target_list(path)
        assert [t.name for t in back] == [t.name for t in science_targets]
        for original, loaded in zip(science_targets, back):
            assert loaded.priority == pytest.approx(original.priority)
            assert loaded.ra_dec.ra_degrees == pytest.approx(original.ra_dec.ra_degrees, abs=1e-5)
            assert loaded.ra_dec.dec_degrees == pytest.approx(
                original.ra_dec.dec_degrees, abs=1e-5)

    def test_mask_targets(self, generated, tmp_path):
        """Test: Science targets are followed by alignment stars."""
        path = tmp_path / "mask.coords"
        assert write_mask_targets(generated, path) == 8
        priorities = [t.priority for t in read_target_list(path)]
        assert all(p > 0 for p in priorities[:5])
        assert all(p < 0 for p in priorities[5:])

    def test_excess_targets(self, generated, tmp_path):
        """Test: Nothing is excess when every target got a slit."""
        assert write_excess_targets(generated, tmp_path / "excess.coords") == 0
