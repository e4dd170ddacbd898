"""Astropy configuration for quiet, offline file output.

The FITS writer is the only astropy consumer in csumask. This module keeps
astropy from reaching for the network (IERS refresh) or chattering on the
root logger when a mask product is written.

Usage:
    from csumask.utils.astropy_config import configure_astropy
    configure_astropy()  # Call before writing FITS products

Environment Variables:
    CSUMASK_ASTROPY_CACHE_DIR: Override Astropy cache directory
"""

import os
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Track if we've already configured
_configured = False


def configure_astropy(cache_dir: Optional[Path] = None) -> bool:
    """Configure Astropy for offline, quiet operation.

    Parameters
    ----------
    cache_dir : Path, optional
        Override Astropy cache directory.
        If None, respects CSUMASK_ASTROPY_CACHE_DIR env var.

    Returns
    -------
    bool
        True once configuration has been applied.

    Notes
    -----
    This function is idempotent - calling it multiple times has no effect
    after the first successful configuration.
    """
    global _configured

    if _configured:
        return True

    if cache_dir is None:
        env_cache = os.environ.get('CSUMASK_ASTROPY_CACHE_DIR')
        if env_cache:
            cache_dir = Path(env_cache)

    if cache_dir is not None:
        # astropy only honours XDG_CACHE_HOME when the astropy subdir exists
        (cache_dir / "astropy").mkdir(parents=True, exist_ok=True)
        os.environ["XDG_CACHE_HOME"] = str(cache_dir)
        logger.debug(f"Astropy cache directory set to {cache_dir}")

    from astropy import log as astropy_log
    from astropy.utils import iers

    # Header timestamps never need fresh Earth-orientation tables
    iers.conf.auto_download = False
    astropy_log.setLevel('WARNING')

    _configured = True
    logger.debug("Astropy configured for offline FITS output")
    return True
