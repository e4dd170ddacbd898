"""
Slit Configuration File Tests
=============================

Tests for the MSC (XML) writer and reader.

Key requirements:
- Writing marks the configuration SAVED
- Reading rebuilds targets, row-spans and priorities
- Malformed files raise FormatError; a missing mechanical target only warns

Run with:
    pytest csumask/tests/test_msc_io.py -v
"""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from csumask.engine.configuration import Configuration, ConfigurationStatus
from csumask.errors import FormatError
from csumask.io.msc_reader import parse_msc_element, parse_msc_string, read_msc_file
from csumask.io.msc_writer import (
    MECHANICAL_SLIT,
    MECHANICAL_SLIT_CONFIG,
    configuration_to_element,
    configuration_to_string,
    write_msc_file,
)
from csumask.utils.constants import MSC_VERSION


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class TestWriter:
    """XML layout and the SAVED transition."""

    def test_sections(self, generated):
        """Test: Root carries the version and the five sections in order."""
        root = configuration_to_element(generated)
        assert root.tag == "slitConfiguration"
        assert root.get("mscVersion") == MSC_VERSION
        assert [child.tag for child in root] == [
            "maskDescription", "mechanicalSlitConfig", "scienceSlitConfig",
            "alignment", "mascgenArguments",
        ]
        assert len(root.find("mechanicalSlitConfig")) == 46
        assert len(root.find("scienceSlitConfig")) == 5
        assert len(root.find("alignment")) == 3

    def test_attribute_precision(self, generated):
        """Test: Positions keep 3 decimals, priorities 2."""
        root = configuration_to_element(generated)
        mech = root.find("mechanicalSlitConfig")[0]
        assert len(mech.get("centerPositionArcsec").split(".")[1]) == 3
        assert len(mech.get("leftBarPositionMM").split(".")[1]) == 3
        science = root.find("scienceSlitConfig")[0]
        assert len(science.get("targetPriority").split(".")[1]) == 2
        assert science.get("slitDecD")[0] in "+-"
        description = root.find("maskDescription")
        assert description.get("maskName") == "synthetic"
        assert description.get("totalPriority") == "300.00"

    def test_bar_numbers(self, generated):
        """Test: Row n is formed by bars 2n-1 (right) and 2n (left)."""
        mech = configuration_to_element(generated).find("mechanicalSlitConfig")[9]
        assert mech.get("slitNumber") == "10"
        assert mech.get("rightBarNumber") == "19"
        assert mech.get("leftBarNumber") == "20"

    def test_write_marks_saved(self, generated, tmp_path):
        """Test: Writing sets SAVED and records the file name."""
        path = write_msc_file(generated, tmp_path / "mask.xml")
        assert path.exists()
        assert generated.status == ConfigurationStatus.SAVED
        assert generated.original_filename == str(path)
        assert generated.msc_version == MSC_VERSION

    def test_pretty_printed(self, generated):
        """Test: The document is indented, one element per line."""
        text = configuration_to_string(generated)
        assert text.startswith("<?xml")
        assert "\n  <maskDescription" in text


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

class TestRoundTrip:
    """Write then read back."""

    def test_generated(self, generated, tmp_path):
        """Test: Slits, targets and priority survive a round trip."""
        path = write_msc_file(generated, tmp_path / "mask.xml")
        result = read_msc_file(path)
        loaded = result.configuration

        assert result.warnings == ()
        assert loaded.status == ConfigurationStatus.SAVED
        assert loaded.mask_name == generated.mask_name
        assert loaded.msc_version == MSC_VERSION
        assert loaded.original_filename == str(path)
        assert len(loaded.mechanical_slits) == 46
        assert [s.slit_rows for s in loaded.science_slits] == [
            s.slit_rows for s in generated.science_slits]
        assert [s.name for s in loaded.mechanical_slits] == [
            s.name for s in generated.mechanical_slits]
        assert loaded.total_priority == pytest.approx(generated.total_priority)
        assert loaded.parameters == generated.parameters
        assert loaded.pointing.position_angle == pytest.approx(0.0)

    def test_rows_share_targets(self, generated, tmp_path):
        """Test: Consecutive rows with one name share one Target object."""
        path = write_msc_file(generated, tmp_path / "mask.xml")
        loaded = read_msc_file(path).configuration
        for slit in loaded.mechanical_slits:
            science = loaded.science_slit_for(slit.target)
            assert science is not None
            assert slit.slit_rows == science.slit_rows

    def test_alignment_slits(self, generated, tmp_path):
        """Test: Alignment boxes come back with their stars."""
        path = write_msc_file(generated, tmp_path / "mask.xml")
        loaded = read_msc_file(path).configuration
        assert [s.slit_number for s in loaded.align_slits] == [
            s.slit_number for s in generated.align_slits]
        assert all(s.target is not None for s in loaded.align_slits)
        assert len(loaded.pointing.alignment_stars) == 3

    def test_loaded_configuration_is_editable(self, generated, tmp_path):
        """Test: Edits work on a loaded configuration and mark it MODIFIED."""
        path = write_msc_file(generated, tmp_path / "mask.xml")
        loaded = read_msc_file(path).configuration
        assert loaded.set_slit_width(0, 1.0)
        assert loaded.status == ConfigurationStatus.MODIFIED

    def test_long_slit(self, tmp_path):
        """Test: The long-slit preset, whose box has no star, round trips."""
        config = Configuration.long_slit(7, 0.7)
        loaded = read_msc_file(write_msc_file(config, tmp_path / "long.xml")).configuration
        assert [s.slit_number for s in loaded.mechanical_slits] == [
            s.slit_number for s in config.mechanical_slits]
        assert loaded.science_slits == []
        assert loaded.align_slits[0].target is None
        assert loaded.align_slits[0].slit_number == 23


class TestParseErrors:
    """Malformed documents."""

    def test_not_xml(self):
        with pytest.raises(FormatError):
            parse_msc_string("<slitConfiguration>")

    def test_wrong_root(self):
        with pytest.raises(FormatError, match="Root element"):
            parse_msc_string("<mask/>")

    def test_unknown_element(self, generated):
        root = configuration_to_element(generated)
        ET.SubElement(root, "bogusSection")
        with pytest.raises(FormatError, match="bogusSection"):
            parse_msc_element(root)

    def test_missing_section(self, generated):
        root = configuration_to_element(generated)
        root.remove(root.find("scienceSlitConfig"))
        with pytest.raises(FormatError, match="scienceSlitConfig"):
            parse_msc_element(root)

    def test_missing_attribute(self, generated):
        root = configuration_to_element(generated)
        del root.find("maskDescription").attrib["maskPA"]
        with pytest.raises(FormatError, match="maskPA"):
            parse_msc_element(root)

    def test_bad_number(self, generated):
        root = configuration_to_element(generated)
        root.find("scienceSlitConfig")[0].set("slitWidthArcsec", "wide")
        with pytest.raises(FormatError, match="slitWidthArcsec"):
            parse_msc_element(root)

    def test_file_source_in_message(self, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_text("<slitConfiguration><maskDescription/></slitConfiguration>")
        with pytest.raises(FormatError) as info:
            read_msc_file(path)
        assert info.value.source == path
        assert str(path) in str(info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            read_msc_file(tmp_path / "absent.xml")

    def test_missing_mech_target_warns(self, generated):
        root = configuration_to_element(generated)
        first = root.find(MECHANICAL_SLIT_CONFIG).find(MECHANICAL_SLIT)
        del first.attrib["target"]
        result = parse_msc_element(root)
        assert len(result.warnings) == 1
        assert "has no target" in result.warnings[0]
        assert result.configuration.mechanical_slits[0].target is None
