"""csumask utilities module."""

from csumask.utils.constants import *
from csumask.utils.astropy_config import configure_astropy

__all__ = [
    'configure_astropy',
    'CsuGeometry',
    'DEFAULT_GEOMETRY',
]
