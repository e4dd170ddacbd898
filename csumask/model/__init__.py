"""
csumask Model Module
====================

Plain records shared by the engine and the I/O layer.

Key components:
- RaDec, Target, PointingSolution: sky-side records
- MechanicalSlit, ScienceSlit: slit records
- MaskParameters: generation and edit parameters
- Codecs: sexagesimal text <-> triplets, used only at the I/O boundary

Usage:
    from csumask.model import Target, RaDec, MaskParameters
"""

from csumask.model.codecs import CODECS, get_codec
from csumask.model.parameters import MaskParameters
from csumask.model.slits import (
    UNASSIGNED_ROWS,
    MechanicalSlit,
    ScienceSlit,
    slit_number_key,
)
from csumask.model.targets import PointingSolution, RaDec, Target, spans_ra_wrap

__all__ = [
    'CODECS',
    'get_codec',
    'MaskParameters',
    'UNASSIGNED_ROWS',
    'MechanicalSlit',
    'ScienceSlit',
    'slit_number_key',
    'PointingSolution',
    'RaDec',
    'Target',
    'spans_ra_wrap',
]
