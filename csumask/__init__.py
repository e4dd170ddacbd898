"""csumask: slit layout engine for a configurable multi-slit mask unit.

Maps a target list and a pointing solution onto the bar pairs of a
cryogenic slit unit (CSU), groups rows into science slits, selects
alignment stars and supports bounded interactive edits.
"""

# Version
__version__ = "0.1.0"
