"""FITS description of a slit configuration.

The file has an empty primary HDU carrying the mask keywords, followed by
four ASCII table extensions:

- ``Target_List``: science targets then alignment stars
- ``Science_Slit_List``: logical slits with sky positions
- ``Mechanical_Slit_List``: bar pairs (alignment boxes substituted on request)
- ``Alignment_Slit_List``: alignment boxes with their stars
"""

import logging
from pathlib import Path
from typing import Callable, List, Sequence, Tuple, Union

import numpy as np
from astropy.io import fits
from astropy.time import Time

from csumask.engine.configuration import Configuration
from csumask.model.codecs import CODECS
from csumask.model.slits import MechanicalSlit, slit_number_key
from csumask.model.targets import RaDec, Target
from csumask.utils.astropy_config import configure_astropy
from csumask.utils.constants import MSC_VERSION

logger = logging.getLogger(__name__)

# (name, FITS ASCII format, unit or None, value getter)
ColumnSpec = Tuple[str, str, Union[str, None], Callable]


def _sexagesimal_columns(prefix: str, get_ra_dec: Callable[..., RaDec]) -> List[ColumnSpec]:
    def ra(row):
        ra_dec = get_ra_dec(row)
        return CODECS['ra'].encode_parts((ra_dec.ra_hour, ra_dec.ra_min, ra_dec.ra_sec))

    def dec(row):
        ra_dec = get_ra_dec(row)
        return CODECS['dec'].encode_parts((ra_dec.dec_deg, ra_dec.dec_min, ra_dec.dec_sec))

    return [
        (f"{prefix}RA_Hours", 'I2', None, lambda row: int(ra(row)[0])),
        (f"{prefix}RA_Minutes", 'I2', None, lambda row: int(ra(row)[1])),
        (f"{prefix}RA_Seconds", 'F6.2', None, lambda row: float(ra(row)[2])),
        # string keeps the sign of "-00"
        (f"{prefix}Dec_Degrees", 'A3', None, lambda row: dec(row)[0]),
        (f"{prefix}Dec_Minutes", 'I2', None, lambda row: int(dec(row)[1])),
        (f"{prefix}Dec_Seconds", 'F6.2', None, lambda row: float(dec(row)[2])),
    ]


def _target_columns(get_target: Callable[..., Target]) -> List[ColumnSpec]:
    return (
        [
            ("Target_Name", 'A', None, lambda row: get_target(row).name),
            ("Priority", 'F10.2', None, lambda row: get_target(row).priority),
            ("Magnitude", 'F6.2', None, lambda row: get_target(row).magnitude),
        ]
        + _sexagesimal_columns("", lambda row: get_target(row).ra_dec)
        + [
            ("Epoch", 'F7.1', None, lambda row: get_target(row).epoch),
            ("Equinox", 'F7.1', None, lambda row: get_target(row).equinox),
        ]
    )


def _table_hdu(name: str, specs: Sequence[ColumnSpec], rows: Sequence) -> fits.TableHDU:
    """Build an ASCII table extension from column specs and row objects."""
    columns = []
    for column_name, fmt, unit, getter in specs:
        values = [getter(row) for row in rows]
        if fmt == 'A':
            width = max([1] + [len(value) for value in values])
            fmt = f'A{width}'
            array = np.array(values, dtype=f'U{width}')
        elif fmt.startswith('I'):
            array = np.array(values, dtype=np.int32)
        elif fmt.startswith('F'):
            array = np.array(values, dtype=np.float64)
        else:
            array = np.array(values, dtype=f'U{fmt[1:]}')
        columns.append(fits.Column(name=column_name, format=fmt, unit=unit, array=array))
    return fits.TableHDU.from_columns(fits.ColDefs(columns), name=name)


# ---------------------------------------------------------------------------
# Extensions
# ---------------------------------------------------------------------------

def target_list_hdu(config: Configuration) -> fits.TableHDU:
    """Science targets in slit order followed by alignment stars."""
    return _table_hdu("Target_List", _target_columns(lambda target: target),
                      config.all_targets())


def science_slit_list_hdu(config: Configuration) -> fits.TableHDU:
    specs = (
        [("Slit_Number", 'I4', None, lambda slit: slit.slit_number)]
        + _sexagesimal_columns("Slit_", lambda slit: slit.ra_dec)
        + [
            ("Slit_width", 'F8.3', 'arcsec', lambda slit: slit.slit_width),
            ("Slit_length", 'F8.3', 'arcsec', lambda slit: slit.slit_length),
            ("Target_to_center_of_slit_distance", 'F8.3', 'arcsec',
             lambda slit: slit.center_distance),
            ("Target_Name", 'A', None, lambda slit: slit.target.name),
            ("Target_Priority", 'F10.2', None, lambda slit: slit.target.priority),
        ]
    )
    return _table_hdu("Science_Slit_List", specs,
                      sorted(config.science_slits, key=slit_number_key))


def mechanical_slit_list_hdu(config: Configuration, with_alignment: bool = False) -> fits.TableHDU:
    """Bar pairs; ``with_alignment`` swaps in the alignment boxes."""
    slits: List[MechanicalSlit] = list(config.mechanical_slits)
    if with_alignment:
        for align in config.align_slits:
            slits[config.mech_slit_index(align.slit_number)] = align
    specs = [
        ("Slit_Number", 'I4', None, lambda slit: slit.slit_number),
        ("Target_in_Slit", 'A', None, lambda slit: slit.name),
        ("Target_Priority", 'F10.2', None, lambda slit: slit.priority),
        ("Position_of_Slit", 'F9.3', 'arcsec', lambda slit: slit.center_position),
        ("Slit_width", 'F8.3', 'arcsec', lambda slit: slit.slit_width),
        ("Target_to_center_of_slit_distance", 'F8.3', 'arcsec',
         lambda slit: slit.center_distance),
    ]
    return _table_hdu("Mechanical_Slit_List", specs, sorted(slits, key=slit_number_key))


def alignment_slit_list_hdu(config: Configuration) -> fits.TableHDU:
    """Alignment boxes that hold a star."""
    slits = [slit for slit in config.align_slits if slit.target is not None]
    specs = [
        ("Slit_Number", 'I4', None, lambda slit: slit.slit_number),
        ("Position_of_Slit", 'F9.3', 'arcsec', lambda slit: slit.center_position),
        ("Slit_width", 'F8.3', 'arcsec', lambda slit: slit.slit_width),
        ("Target_to_center_of_slit_distance", 'F8.3', 'arcsec',
         lambda slit: slit.center_distance),
    ] + _target_columns(lambda slit: slit.target)
    return _table_hdu("Alignment_Slit_List", specs, sorted(slits, key=slit_number_key))


def primary_hdu(config: Configuration) -> fits.PrimaryHDU:
    """Empty primary HDU with the mask keywords."""
    center = config.pointing.center
    hdu = fits.PrimaryHDU()
    header = hdu.header
    header['MASKNAME'] = (config.mask_name, 'Mask name')
    header['RA'] = (center.ra_string(sep=":"), 'Mask center RA')
    header['DEC'] = (center.dec_string(sep=":"), 'Mask center Dec')
    header['RA_DEG'] = (round(center.ra_degrees, 6), '[deg] Mask center RA')
    header['DEC_DEG'] = (round(center.dec_degrees, 6), '[deg] Mask center Dec')
    header['MASKPA'] = (round(config.pointing.position_angle, 2), '[deg] Position angle')
    header['TOTPRI'] = (round(config.total_priority, 2), 'Total priority of valid targets')
    header['NSCISLIT'] = (len(config.science_slits), 'Number of science slits')
    header['NALIGN'] = (len(config.align_slits), 'Number of alignment slits')
    header['MSCVER'] = (MSC_VERSION, 'Slit configuration format version')
    header['DATE'] = (Time.now().isot, 'File creation time (UTC)')
    return hdu


def configuration_to_hdulist(config: Configuration, with_alignment: bool = False) -> fits.HDUList:
    configure_astropy()
    return fits.HDUList([
        primary_hdu(config),
        target_list_hdu(config),
        science_slit_list_hdu(config),
        mechanical_slit_list_hdu(config, with_alignment),
        alignment_slit_list_hdu(config),
    ])


def write_fits_file(config: Configuration, path: Union[str, Path],
                    with_alignment: bool = False) -> Path:
    """Write the FITS description of a configuration.

    Parameters
    ----------
    config : Configuration
        Configuration to describe.
    path : str or Path
        Destination file; overwritten if it exists.
    with_alignment : bool, default False
        Substitute alignment boxes in the mechanical slit table.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    configuration_to_hdulist(config, with_alignment).writeto(path, overwrite=True)
    logger.info(f"Wrote FITS description of {config.mask_name} to {path}")
    return path
