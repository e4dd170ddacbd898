"""Mechanical and geometric integrity checks for a configuration.

Validates a :class:`~csumask.engine.configuration.Configuration` before it
is written or sent to the hardware:
- Bar positions outside the travel limits
- Slits narrower than the minimum width
- Duplicate or out-of-range slit numbers
- Science slit lengths inconsistent with their row-span
- Science targets that would leave their slit during the dither

Provides both a list of warnings/errors and an optional strict mode
that raises on the first error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from csumask.engine.configuration import Configuration


# ---------------------------------------------------------------------------
# Severity levels
# ---------------------------------------------------------------------------

class Severity(Enum):
    """Severity level for validation issues."""
    WARNING = auto()
    ERROR = auto()


# ---------------------------------------------------------------------------
# Validation issue
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationIssue:
    """A single validation issue found in a configuration.

    Attributes
    ----------
    severity : Severity
        WARNING or ERROR.
    code : str
        Short machine-readable code (e.g. ``'BAR_LIMIT'``).
    message : str
        Human-readable description.
    slits : tuple of int
        Slit numbers involved (may be empty for global issues).
    """
    severity: Severity
    code: str
    message: str
    slits: tuple = ()

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == Severity.ERROR else "WARNING"
        slit_str = f" [slits: {list(self.slits)}]" if self.slits else ""
        return f"{prefix}: {self.code} -- {self.message}{slit_str}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_configuration(
    config: Configuration,
    *,
    length_tol: float = 1e-6,
    strict: bool = False,
) -> List[ValidationIssue]:
    """Check a configuration against the hardware and geometry limits.

    Parameters
    ----------
    config : Configuration
        Configuration to check.
    length_tol : float, default 1e-6
        Allowed difference (arcsec) between a science slit's length and
        the length implied by its row-span.
    strict : bool, default False
        If True, raise ``ValueError`` on the first ERROR-level issue.

    Returns
    -------
    list of ValidationIssue
        All issues found, ordered by severity (errors first).

    Raises
    ------
    ValueError
        If *strict* is True and an ERROR-level issue is detected.
    """
    geometry = config.geometry
    issues: List[ValidationIssue] = []

    # --- Bar travel ------------------------------------------------------
    for label, slits in (("mechanical", config.mechanical_slits),
                         ("alignment", config.align_slits)):
        bad = tuple(slit.slit_number for slit in slits if not slit.bars_within_limits(geometry))
        if bad:
            issues.append(ValidationIssue(
                Severity.ERROR, "BAR_LIMIT",
                f"{len(bad)} {label} slit(s) have bars outside "
                f"[{geometry.minimum_bar_mm}, {geometry.maximum_bar_mm}] mm",
                bad,
            ))

    # --- Minimum width ---------------------------------------------------
    narrow = tuple(slit.slit_number for slit in config.mechanical_slits
                   if slit.slit_width < geometry.minimum_slit_width)
    if narrow:
        issues.append(ValidationIssue(
            Severity.ERROR, "NARROW_SLIT",
            f"{len(narrow)} slit(s) narrower than {geometry.minimum_slit_width} arcsec",
            narrow,
        ))

    # --- Slit numbering --------------------------------------------------
    numbers = [slit.slit_number for slit in config.mechanical_slits]
    out_of_range = tuple(n for n in numbers if not 1 <= n <= geometry.n_rows)
    if out_of_range:
        issues.append(ValidationIssue(
            Severity.ERROR, "SLIT_NUMBER_RANGE",
            f"Slit numbers outside 1-{geometry.n_rows}", out_of_range,
        ))
    duplicates = tuple(sorted({n for n in numbers if numbers.count(n) > 1}))
    if duplicates:
        issues.append(ValidationIssue(
            Severity.ERROR, "DUPLICATE_SLIT",
            f"{len(duplicates)} slit number(s) used more than once", duplicates,
        ))

    # --- Science slit lengths --------------------------------------------
    bad_length = tuple(
        slit.slit_number for slit in config.science_slits
        if not math.isclose(slit.slit_length, geometry.slit_length(slit.slit_rows),
                            abs_tol=length_tol)
    )
    if bad_length:
        issues.append(ValidationIssue(
            Severity.ERROR, "SLIT_LENGTH",
            f"{len(bad_length)} science slit length(s) disagree with their row-span",
            bad_length,
        ))

    # --- Target validity (warning only) ----------------------------------
    invalid = tuple(slit.slit_number for slit in config.science_slits
                    if not slit.target.in_valid_slit)
    if invalid:
        issues.append(ValidationIssue(
            Severity.WARNING, "TARGET_NEAR_EDGE",
            f"{len(invalid)} target(s) leave their slit during the dither",
            invalid,
        ))

    issues.sort(key=lambda issue: 0 if issue.severity == Severity.ERROR else 1)

    if strict:
        for issue in issues:
            if issue.severity == Severity.ERROR:
                raise ValueError(str(issue))

    return issues
