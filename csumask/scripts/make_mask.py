#!/usr/bin/env python3
"""Command-line interface for laying out CSU slit masks.

Generates a mask from a target list (or a long-slit / open preset, or an
existing MSC file) and writes the slit configuration plus any requested
products into an output directory.
"""

import argparse
import logging
import sys
from pathlib import Path

from csumask.engine import Configuration, Severity, validate_configuration
from csumask.errors import CsuMaskError
from csumask.io.msc_reader import read_msc_file
from csumask.io.msc_writer import write_msc_file
from csumask.io.target_list import read_target_list, write_excess_targets, write_mask_targets
from csumask.io.text_writers import (
    write_alignment_script,
    write_ds9_regions,
    write_science_script,
    write_slit_list,
    write_star_list,
)
from csumask.model import MaskParameters, PointingSolution, RaDec
from csumask.utils.constants import (
    DEFAULT_ALIGNMENT_STAR_EDGE_BUFFER,
    DEFAULT_DITHER_SPACE,
    DEFAULT_MINIMUM_ALIGNMENT_STARS,
    DEFAULT_SLIT_WIDTH,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lay out a CSU multi-slit mask",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate a mask from a target list
  csumask-make field1.coords --center-ra 10:00:00 --center-dec +02:00:00 --pa 15 --name field1

  # Also write FITS, DS9 regions and CSU scripts
  csumask-make field1.coords --center-ra 10:00:00 --center-dec +02:00:00 --fits --ds9 --scripts

  # Long-slit calibration mask, 11 rows, 0.7 arcsec wide
  csumask-make --long-slit 11 0.7 --output-dir ./masks

  # Regenerate products from a saved configuration
  csumask-make --from-msc field1.xml --fits --slit-list
        """
    )

    parser.add_argument(
        "target_list",
        type=Path,
        nargs="?",
        help="Target list (negative priorities mark alignment star candidates)"
    )

    source = parser.add_argument_group("mask source")
    source.add_argument("--center-ra", type=str, help="Mask center RA (HH:MM:SS.ss)")
    source.add_argument("--center-dec", type=str, help="Mask center Dec (+DD:MM:SS.ss)")
    source.add_argument("--pa", type=float, default=0.0,
                        help="Mask position angle in degrees (default: 0)")
    source.add_argument("--long-slit", nargs=2, metavar=("ROWS", "WIDTH"),
                        help="Build a long-slit preset instead of generating")
    source.add_argument("--open-mask", action="store_true",
                        help="Build the open-mask preset instead of generating")
    source.add_argument("--from-msc", type=Path,
                        help="Load an existing slit configuration")

    gen = parser.add_argument_group("generation")
    gen.add_argument("--name", type=str, default=None, help="Mask name")
    gen.add_argument("--slit-width", type=float, default=DEFAULT_SLIT_WIDTH,
                     help=f"Slit width in arcsec (default: {DEFAULT_SLIT_WIDTH})")
    gen.add_argument("--dither", type=float, default=DEFAULT_DITHER_SPACE,
                     help=f"Dither margin in arcsec (default: {DEFAULT_DITHER_SPACE})")
    gen.add_argument("--align-stars", type=int, default=DEFAULT_MINIMUM_ALIGNMENT_STARS,
                     help=f"Alignment stars to place (default: {DEFAULT_MINIMUM_ALIGNMENT_STARS})")
    gen.add_argument("--edge-buffer", type=float, default=DEFAULT_ALIGNMENT_STAR_EDGE_BUFFER,
                     help="Minimum star distance from a row edge in arcsec "
                          f"(default: {DEFAULT_ALIGNMENT_STAR_EDGE_BUFFER})")
    gen.add_argument("--no-reassign", action="store_true",
                     help="Leave unused rows empty instead of extending slits")

    out = parser.add_argument_group("output")
    out.add_argument("--output-dir", type=Path, default=Path("."),
                     help="Directory for output files (default: current directory)")
    out.add_argument("--fits", action="store_true", help="Write the FITS description")
    out.add_argument("--ds9", action="store_true", help="Write DS9 regions")
    out.add_argument("--scripts", action="store_true",
                     help="Write science and alignment CSU scripts")
    out.add_argument("--star-list", action="store_true", help="Write the Keck star list")
    out.add_argument("--slit-list", action="store_true", help="Write the science slit list")
    out.add_argument("--target-lists", action="store_true",
                     help="Write the mask and excess target lists")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Print detailed progress information")
    return parser


def _build_configuration(args, parser: argparse.ArgumentParser) -> Configuration:
    if args.from_msc is not None:
        result = read_msc_file(args.from_msc)
        for message in result.warnings:
            print(f"Warning: {message}", file=sys.stderr)
        return result.configuration

    if args.long_slit is not None:
        rows, width = args.long_slit
        return Configuration.long_slit(int(rows), float(width))

    if args.open_mask:
        return Configuration.open_mask()

    if args.target_list is None or args.center_ra is None or args.center_dec is None:
        parser.error("a target list, --center-ra and --center-dec are required to generate a mask")

    objects = read_target_list(args.target_list)
    center = RaDec.from_strings(args.center_ra, args.center_dec)
    pointing = PointingSolution.from_target_list(objects, center, args.pa)
    parameters = MaskParameters(
        mask_name=args.name or args.target_list.stem,
        slit_width=args.slit_width,
        dither_space=args.dither,
        minimum_alignment_stars=args.align_stars,
        alignment_star_edge_buffer=args.edge_buffer,
        reassign_unused_slits=not args.no_reassign,
    )
    return Configuration.generate(pointing, parameters)


def _write_products(config: Configuration, args) -> None:
    out = args.output_dir
    out.mkdir(parents=True, exist_ok=True)
    stem = config.mask_name

    written = [write_msc_file(config, out / f"{stem}.xml")]
    if args.fits:
        # astropy is only imported when FITS output is requested
        from csumask.io.fits_writer import write_fits_file
        written.append(write_fits_file(config, out / f"{stem}.fits"))
    if args.ds9:
        written.append(write_ds9_regions(config, out / f"{stem}.reg"))
    if args.scripts:
        written.append(write_science_script(config, out / f"{stem}_science.sh"))
        written.append(write_alignment_script(config, out / f"{stem}_align.sh"))
    if args.star_list:
        written.append(write_star_list(config, out / f"{stem}_starlist.txt"))
    if args.slit_list:
        written.append(write_slit_list(config, out / f"{stem}_slitlist.txt"))
    if args.target_lists:
        targets = out / f"{stem}_targets.coords"
        excess = out / f"{stem}_excess.coords"
        write_mask_targets(config, targets)
        write_excess_targets(config, excess)
        written.extend([targets, excess])

    for path in written:
        print(f"  Wrote {path}")


def main(argv=None):
    """Main entry point for csumask-make CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.target_list is not None and not args.target_list.exists():
        print(f"Error: target list not found: {args.target_list}", file=sys.stderr)
        return 1

    try:
        config = _build_configuration(args, parser)
        if args.name and args.from_msc is None and args.target_list is None:
            config.mask_name = args.name

        issues = validate_configuration(config)
        for issue in issues:
            print(issue, file=sys.stderr)
        if any(issue.severity == Severity.ERROR for issue in issues):
            print("Error: configuration failed validation, nothing written", file=sys.stderr)
            return 1

        print(f"\nMask {config.mask_name}:")
        print(f"  Science slits:   {len(config.science_slits):4d}")
        print(f"  Alignment boxes: {len(config.align_slits):4d}")
        print(f"  Total priority:  {config.total_priority:10.2f}")
        _write_products(config, args)
        return 0

    except (CsuMaskError, OSError, ValueError) as e:
        print(f"Error building mask: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
