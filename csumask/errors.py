"""Exception types raised by csumask.

Bounds violations during interactive edits are not exceptions: the edit
methods on :class:`~csumask.engine.configuration.Configuration` return
``False`` and leave the configuration untouched.
"""

from pathlib import Path
from typing import Optional, Union


class CsuMaskError(Exception):
    """Base class for csumask errors."""


class FormatError(CsuMaskError, ValueError):
    """A persisted configuration or target list is malformed.

    Parameters
    ----------
    message : str
        Human-readable description.
    source : Path or str, optional
        File being parsed.
    element : str, optional
        Element, attribute or line that failed.
    """

    def __init__(
        self,
        message: str,
        source: Optional[Union[Path, str]] = None,
        element: Optional[str] = None,
    ):
        self.source = source
        self.element = element
        prefix = f"{source}: " if source is not None else ""
        super().__init__(f"{prefix}{message}")


class SlitLookupError(CsuMaskError, LookupError):
    """An edit referenced a row or target with no matching slit."""
