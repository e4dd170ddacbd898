"""Tests for the text and FITS products written from a configuration."""

import sys
from pathlib import Path

import pytest
from astropy.io import fits

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from csumask.engine.configuration import Configuration
from csumask.io.fits_writer import write_fits_file
from csumask.io.text_writers import (
    format_alignment_script,
    format_ds9_regions,
    format_science_script,
    format_slit_list,
    format_star_list_line,
    write_science_script,
    write_slit_list,
)
from csumask.model.codecs import CODECS

N = 46


# ---------------------------------------------------------------------------
# Slit and star lists
# ---------------------------------------------------------------------------

class TestSlitList:
    """Tab-separated science slit list."""

    def test_one_line_per_slit(self, generated):
        lines = format_slit_list(generated)
        assert len(lines) == len(generated.science_slits)
        fields = lines[0].split("\t")
        assert len(fields) == 18
        first = min(generated.science_slits, key=lambda slit: slit.slit_number)
        assert fields[0] == str(first.slit_number)
        assert fields[9] == first.target.name

    def test_write(self, generated, tmp_path):
        path = write_slit_list(generated, tmp_path / "slits.txt")
        assert path.read_text().count("\n") == len(generated.science_slits)


class TestStarList:
    """Keck star-list line."""

    def test_columns(self, generated):
        generated.pointing.position_angle = 15.0
        line = format_star_list_line(generated)
        assert line.startswith("synthetic       10 00 00.00  +02 00 00.00 2000.00")
        assert line[16:18] == "10"
        assert line.endswith("rotdest=15.00 rotmode=PA")

    def test_long_name_truncated(self, generated):
        generated.mask_name = "a_very_long_mask_name"
        line = format_star_list_line(generated)
        assert line[:16] == "a_very_long_mas "


# ---------------------------------------------------------------------------
# CSU scripts
# ---------------------------------------------------------------------------

class TestScripts:
    """CSU command scripts."""

    def test_science_script(self, generated):
        lines = format_science_script(generated)
        assert lines[0] == 'modify -s mcsus setupname="synthetic"'
        assert lines[-1] == "modify -s mcsus setupinit=1"
        assert len(lines) == 2 * N + 2
        assert lines[1].startswith("modify -s mcsus b01targ= ")
        assert lines[2].startswith("modify -s mcsus b02targ= ")

    def test_bar_positions(self, generated):
        slit = generated.mechanical_slits[0]
        lines = format_science_script(generated)
        assert lines[1].endswith(f"{slit.right_bar_position_mm():7.3f}")
        assert lines[2].endswith(f"{slit.left_bar_position_mm():7.3f}")

    def test_targets_only(self, generated):
        lines = format_science_script(generated, set_targets_only=True)
        assert len(lines) == 2 * N + 1
        assert "setupinit" not in lines[-1]

    def test_alignment_script(self, generated):
        lines = format_alignment_script(generated)
        assert lines[0] == 'modify -s mcsus setupname="synthetic (align)"'
        align = generated.align_slits[0]
        right = f"modify -s mcsus b{align.right_bar_number:02d}targ= " \
                f"{align.right_bar_position_mm():7.3f}"
        assert right in lines

    def test_write(self, generated, tmp_path):
        path = write_science_script(generated, tmp_path / "science.sh")
        assert path.read_text().splitlines() == format_science_script(generated)


# ---------------------------------------------------------------------------
# DS9
# ---------------------------------------------------------------------------

class TestDs9Regions:
    """DS9 region overlay."""

    def test_regions(self, generated):
        lines = format_ds9_regions(generated)
        assert lines[0].startswith("# Region file format: DS9")
        assert "fk5" in lines
        assert sum(1 for line in lines if line.startswith("circle(")) == len(
            generated.all_targets())
        assert sum(1 for line in lines if line.startswith("box(")) == 1 + 5 + 3
        assert sum(1 for line in lines if "color=magenta" in line and line.startswith("box(")) == 3

    def test_long_slit(self):
        lines = format_ds9_regions(Configuration.long_slit(5, 0.7))
        assert not any(line.startswith("circle(") for line in lines)


# ---------------------------------------------------------------------------
# FITS
# ---------------------------------------------------------------------------

class TestFits:
    """Four-extension FITS description."""

    def test_extensions(self, generated, tmp_path):
        path = write_fits_file(generated, tmp_path / "mask.fits")
        with fits.open(path) as hdul:
            assert [hdu.name for hdu in hdul] == [
                "PRIMARY", "TARGET_LIST", "SCIENCE_SLIT_LIST",
                "MECHANICAL_SLIT_LIST", "ALIGNMENT_SLIT_LIST",
            ]
            assert hdul[0].header["MASKNAME"] == "synthetic"
            assert hdul[0].header["TOTPRI"] == pytest.approx(300.0)
            assert len(hdul["TARGET_LIST"].data) == len(generated.all_targets())
            assert len(hdul["SCIENCE_SLIT_LIST"].data) == 5
            assert len(hdul["MECHANICAL_SLIT_LIST"].data) == N
            assert len(hdul["ALIGNMENT_SLIT_LIST"].data) == 3

    def test_columns(self, generated, tmp_path):
        path = write_fits_file(generated, tmp_path / "mask.fits")
        with fits.open(path) as hdul:
            science = hdul["SCIENCE_SLIT_LIST"]
            assert science.columns.names[0] == "Slit_Number"
            assert list(science.data["Slit_Number"]) == [1, 2, 3, 4, 5]
            assert science.columns["Slit_width"].unit == "arcsec"
            names = [name.strip() for name in science.data["Target_Name"]]
            assert names == [slit.target.name for slit in sorted(
                generated.science_slits, key=lambda slit: slit.slit_number)]
            targets = hdul["TARGET_LIST"].data
            expected = [
                CODECS["dec"].encode_parts((t.ra_dec.dec_deg, t.ra_dec.dec_min, t.ra_dec.dec_sec))[0]
                for t in generated.all_targets()
            ]
            assert list(targets["Dec_Degrees"]) == expected
            assert expected[0] == "+02"
            assert "+01" in expected

    def test_alignment_substitution(self, generated, tmp_path):
        path = write_fits_file(generated, tmp_path / "mask.fits", with_alignment=True)
        align = generated.align_slits[0]
        with fits.open(path) as hdul:
            mech = hdul["MECHANICAL_SLIT_LIST"].data
            row = list(mech["Slit_Number"]).index(align.slit_number)
            assert mech["Slit_width"][row] == pytest.approx(align.slit_width, abs=1e-3)
            assert mech["Target_in_Slit"][row].strip() == align.target.name
