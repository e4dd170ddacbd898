"""Shared fixtures for the csumask test suite.

Builds a synthetic target field around a fixed pointing so that every
object lands in a known row: with a zero position angle the CSU y offset
of an object is simply its Dec offset from the center, and row ``r``
(0-based from the bottom) is centered at ``y = 8 r - 180`` arcsec.
"""

import math
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from csumask.engine.configuration import Configuration
from csumask.model.parameters import MaskParameters
from csumask.model.targets import PointingSolution, RaDec, Target
from csumask.utils.constants import DEFAULT_GEOMETRY

# ---------------------------------------------------------------------------
# Field layout
# ---------------------------------------------------------------------------
CENTER = RaDec(10.0, 0.0, 0.0, 2.0, 0.0, 0.0)
"""Pointing center: 10:00:00 +02:00:00"""

# (name, priority, x offset arcsec, row)
SCIENCE_LAYOUT = [
    ("gal_a", 100.0, 10.0, 5),
    ("gal_b", 80.0, -20.0, 12),
    ("gal_c", 60.0, 0.0, 22),
    ("gal_d", 40.0, 30.0, 31),
    ("gal_e", 20.0, -5.0, 40),
]

# alignment candidates carry a negative priority
STAR_LAYOUT = [
    ("star_1", -1.0, -100.0, 2),
    ("star_2", -1.0, 80.0, 14),
    ("star_3", -1.0, 0.0, 25),
    ("star_4", -1.0, -60.0, 36),
    ("star_5", -1.0, 120.0, 44),
]

# field straddling 0h: w_a and w_c fall at 23h, w_b and w_d at 0h
WRAPPED_CENTER = RaDec(0.0, 0.0, 2.0, 10.0, 0.0, 0.0)
"""Pointing center: 00:00:02 +10:00:00"""

WRAPPED_LAYOUT = [
    ("w_a", 50.0, -90.0, 8),
    ("w_b", 40.0, 60.0, 18),
    ("w_c", 30.0, -30.0, 28),
    ("w_d", 20.0, 90.0, 38),
]


def row_center_y(row: int) -> float:
    """CSU y of the middle of a 0-based row."""
    return (row + 0.5) * DEFAULT_GEOMETRY.row_height - DEFAULT_GEOMETRY.height / 2.0


def offset_position(center: RaDec, dx: float, dy: float) -> RaDec:
    """Sky position at a (dx, dy) arcsec offset from ``center`` (PA 0)."""
    ra_deg = center.ra_degrees + dx / 3600.0 / math.cos(math.radians(center.dec_degrees))
    dec_deg = center.dec_degrees + dy / 3600.0
    return RaDec.from_degrees(ra_deg, dec_deg)


def make_target(name: str, priority: float, dx: float, row: int,
                center: RaDec = CENTER) -> Target:
    """Target placed in the middle of ``row`` at CSU x offset ``dx``."""
    return Target(name=name, priority=priority, magnitude=18.5,
                  ra_dec=offset_position(center, dx, row_center_y(row)))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def center():
    return CENTER


@pytest.fixture
def science_targets():
    """Five science targets, one per row listed in SCIENCE_LAYOUT."""
    return [make_target(*entry) for entry in SCIENCE_LAYOUT]


@pytest.fixture
def alignment_candidates():
    """Five alignment star candidates on five distinct rows."""
    return [make_target(*entry) for entry in STAR_LAYOUT]


@pytest.fixture
def pointing(science_targets, alignment_candidates):
    """Pointing at CENTER, PA 0, holding the synthetic field."""
    return PointingSolution.from_target_list(
        science_targets + alignment_candidates, CENTER, 0.0)


@pytest.fixture
def parameters():
    return MaskParameters(mask_name="synthetic", minimum_alignment_stars=3)


@pytest.fixture
def generated(pointing, parameters):
    """Configuration generated with slit expansion enabled."""
    return Configuration.generate(pointing, parameters)


@pytest.fixture
def sparse(pointing, parameters):
    """Configuration generated without slit expansion (empty rows remain)."""
    return Configuration.generate(pointing, parameters, reassign_unused_slits=False)


@pytest.fixture
def wrapped_center():
    """Pointing center just west of 0h RA on the equator."""
    return RaDec(23.0, 59.0, 0.0, 0.0, 0.0, 0.0)


@pytest.fixture
def wrapped_pointing():
    """Pointing at WRAPPED_CENTER, PA 0, holding WRAPPED_LAYOUT."""
    targets = [make_target(*entry, center=WRAPPED_CENTER) for entry in WRAPPED_LAYOUT]
    return PointingSolution.from_target_list(targets, WRAPPED_CENTER, 0.0)


@pytest.fixture
def target_list_file(tmp_path):
    """Target list on disk mirroring the synthetic field."""
    lines = ["# name prio mag raH raM raS decD decM decS epoch equinox pmRA pmDec"]
    for entry in SCIENCE_LAYOUT + STAR_LAYOUT:
        target = make_target(*entry)
        lines.append(
            f"{target.name} {target.priority:.2f} {target.magnitude:.2f} "
            f"{target.ra_dec.ra_string(decimals=4)} {target.ra_dec.dec_string(decimals=4)} "
            f"2000.0 2000.0 0.0 0.0"
        )
    path = tmp_path / "synthetic.coords"
    path.write_text("\n".join(lines) + "\n")
    return path
