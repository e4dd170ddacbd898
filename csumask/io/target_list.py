"""Reader and writer for plain-text target lists.

One object per line, whitespace separated::

    name  priority  magnitude  raH raM raS  decD decM decS  epoch  equinox  [pmRA pmDec]

Lines starting with ``#`` and blank lines are ignored. Alignment star
candidates are listed with a negative priority.
"""

import logging
import math
from pathlib import Path
from typing import Iterable, List, Union

from csumask.engine.configuration import Configuration
from csumask.errors import FormatError
from csumask.model.codecs import CODECS
from csumask.model.targets import RaDec, Target

logger = logging.getLogger(__name__)

_MIN_FIELDS = 11


def _parse_line(line: str, lineno: int, source) -> Target:
    tokens = line.split()
    if len(tokens) < _MIN_FIELDS:
        raise FormatError(f"line {lineno}: expected at least {_MIN_FIELDS} fields, "
                          f"got {len(tokens)}", source, f"line {lineno}")
    try:
        values = [float(token) for token in tokens[1:_MIN_FIELDS]]
    except ValueError as exc:
        raise FormatError(f"line {lineno}: {exc}", source, f"line {lineno}") from exc

    priority, magnitude, ra_h, ra_m, ra_s, dec_d, dec_m, dec_s, epoch, equinox = values
    # keep the sign of "-00" declinations
    dec_d = math.copysign(abs(dec_d), -1.0 if tokens[6].startswith('-') else 1.0)
    return Target(
        name=tokens[0],
        priority=priority,
        magnitude=magnitude,
        ra_dec=RaDec(ra_h, ra_m, ra_s, dec_d, dec_m, dec_s),
        epoch=epoch,
        equinox=equinox,
    )


def read_target_list(path: Union[str, Path]) -> List[Target]:
    """Parse a target list file.

    Parameters
    ----------
    path : str or Path
        Target list to read.

    Returns
    -------
    list of Target
        Objects in file order.

    Raises
    ------
    FormatError
        If a line has too few fields or a non-numeric value.
    """
    path = Path(path)
    targets = []
    with open(path, 'r') as f:
        for lineno, line in enumerate(f, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue
            targets.append(_parse_line(stripped, lineno, path))

    n_stars = sum(1 for target in targets if target.is_alignment_candidate)
    logger.info(f"Read {len(targets)} objects ({n_stars} alignment candidates) from {path}")
    return targets


def format_target_line(target: Target) -> str:
    """One target-list line for a target."""
    ra_h, ra_m, ra_s = CODECS['ra'].encode_parts(
        (target.ra_dec.ra_hour, target.ra_dec.ra_min, target.ra_dec.ra_sec), decimals=3)
    dec_d, dec_m, dec_s = CODECS['dec'].encode_parts(
        (target.ra_dec.dec_deg, target.ra_dec.dec_min, target.ra_dec.dec_sec), decimals=2)
    return (f"{target.name}  {target.priority:7.2f}  {target.magnitude:5.2f}  "
            f"{ra_h}  {ra_m}  {ra_s}  {dec_d}  {dec_m}  {dec_s}  "
            f"{target.epoch:6.1f}  {target.equinox:6.1f}  {0.0:3.1f}  {0.0:3.1f}")


def write_target_list(targets: Iterable[Target], path: Union[str, Path]) -> int:
    """Write targets to a target list; returns the number written."""
    path = Path(path)
    lines = [format_target_line(target) + "\n" for target in targets]
    with open(path, 'w') as f:
        f.writelines(lines)
    return len(lines)


def write_mask_targets(config: Configuration, path: Union[str, Path]) -> int:
    """Write the science targets then the alignment stars of a mask."""
    return write_target_list(config.all_targets(), path)


def write_excess_targets(config: Configuration, path: Union[str, Path]) -> int:
    """Write the pointing targets that are not in any slit."""
    return write_target_list(config.excess_targets(), path)
