"""
csumask Engine
==============

Layout computation and editing for slit configurations:
- Coordinate transforms (sky <-> tangent plane <-> CSU, rows)
- Slit assignment and the slit expansion heuristic
- Science slit building and alignment star selection
- The Configuration aggregate with its interactive edits

Usage Example:
--------------
from csumask.engine import Configuration
from csumask.model import MaskParameters, PointingSolution

config = Configuration.generate(pointing, MaskParameters(mask_name="field1"))
config.increment_slit_width(0.1)
"""

from csumask.engine.configuration import Configuration, ConfigurationStatus
from csumask.engine.transforms import Projection
from csumask.engine.validation import Severity, ValidationIssue, validate_configuration

__all__ = [
    'Configuration',
    'ConfigurationStatus',
    'Projection',
    'Severity',
    'ValidationIssue',
    'validate_configuration',
]
