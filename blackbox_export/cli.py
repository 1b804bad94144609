"""
Command-line interface for Blackbox Export.

Exports decoded blackbox flight logs to CSV, GPX and event files and prints
an integrity report for every log.
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .config import ExportConfig
from .pipeline import FlightLogExporter
from .utils import ConfigurationError, LogSelectionError
from .utils.units import parse_degrees_minutes


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Export blackbox flight logs to CSV, GPX and event files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export every log of a file
  blackbox-export LOG00001.json

  # Export the second log only, with GPS data merged into the main table
  blackbox-export LOG00001.json --index 2 --merge-gps

  # Simulate attitude, speed in km/h, print the field limits
  blackbox-export LOG00001.json --simulate-imu --unit-gps-speed kph --limits

  # Write the main table to stdout
  blackbox-export LOG00001.json --index 1 --stdout > flight.csv
        """
    )

    # Input arguments
    parser.add_argument(
        'files',
        nargs='*',
        help='Log files to export'
    )

    parser.add_argument(
        '--index',
        type=int,
        help='Choose the log from the file that should be decoded (or omit to decode all)'
    )

    # Output arguments
    parser.add_argument(
        '--prefix',
        type=str,
        help='Prefix of the output files (default: input file name without extension)'
    )

    parser.add_argument(
        '--stdout',
        action='store_true',
        help='Write log to stdout instead of to a file'
    )

    parser.add_argument(
        '--merge-gps',
        action='store_true',
        help='Merge GPS data into the main CSV log file instead of writing it separately'
    )

    parser.add_argument(
        '--limits',
        action='store_true',
        help='Print the limits and range of each field'
    )

    parser.add_argument(
        '--plot-track',
        action='store_true',
        help='Plot the GPS track of each log to PNG'
    )

    # Units
    parser.add_argument(
        '--unit-gps-speed',
        type=str,
        help='GPS speed unit (mps|kph|mph), default is mps (meters per second)'
    )

    parser.add_argument(
        '--unit-amperage',
        type=str,
        help='Current meter unit (raw|mA|A), default is A (amps)'
    )

    parser.add_argument(
        '--unit-vbat',
        type=str,
        help='Vbat unit (raw|mV|V), default is V (volts)'
    )

    # Attitude simulation
    parser.add_argument(
        '--simulate-imu',
        action='store_true',
        help='Compute tilt/roll/heading fields from gyro/accel/mag data'
    )

    parser.add_argument(
        '--imu-ignore-mag',
        action='store_true',
        help='Ignore magnetometer data when computing heading'
    )

    parser.add_argument(
        '--declination',
        type=str,
        help='Set magnetic declination in degrees.minutes format (e.g. -12.58 for New York)'
    )

    parser.add_argument(
        '--declination-dec',
        type=float,
        help='Set magnetic declination in decimal degrees (e.g. -12.97 for New York)'
    )

    # Decoding
    parser.add_argument(
        '--raw',
        action='store_true',
        help="Don't apply predictions to fields (show raw field deltas)"
    )

    # Configuration arguments
    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Configuration file path (JSON format)'
    )

    parser.add_argument(
        '--save-config',
        type=str,
        help='Save current configuration to file'
    )

    # Logging and debugging
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Show extra debugging information'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress all output except errors'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser


def setup_logging(verbose: bool = False, debug: bool = False, quiet: bool = False):
    """Configure logging based on command line arguments."""
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def create_config_from_args(args: argparse.Namespace) -> ExportConfig:
    """
    Create ExportConfig from command line arguments.

    Raises:
        ConfigurationError: If a unit or another setting is invalid
    """
    # Start with config file if provided
    if args.config:
        config = ExportConfig.from_file(args.config)
    else:
        config = ExportConfig()

    # Override with command line arguments
    overrides: Dict[str, Any] = {}

    if args.index is not None:
        overrides['log_number'] = args.index

    if args.prefix is not None:
        overrides['output_prefix'] = args.prefix

    if args.unit_gps_speed is not None:
        overrides['unit_gps_speed'] = args.unit_gps_speed

    if args.unit_vbat is not None:
        overrides['unit_vbat'] = args.unit_vbat

    if args.unit_amperage is not None:
        overrides['unit_amperage'] = args.unit_amperage

    if args.declination is not None:
        try:
            overrides['magnetic_declination'] = parse_degrees_minutes(args.declination)
        except ValueError as e:
            raise ConfigurationError(f"Bad magnetic declination: {args.declination}") from e

    if args.declination_dec is not None:
        overrides['magnetic_declination'] = args.declination_dec

    flags = {
        'stdout': 'to_stdout',
        'merge_gps': 'merge_gps',
        'limits': 'print_limits',
        'plot_track': 'create_visualizations',
        'simulate_imu': 'simulate_imu',
        'imu_ignore_mag': 'imu_ignore_mag',
        'raw': 'raw',
        'debug': 'debug',
    }
    for arg_name, config_name in flags.items():
        if getattr(args, arg_name):
            overrides[config_name] = True

    if args.verbose or args.debug:
        overrides['verbose'] = True

    return config.copy(**overrides)


def print_reports(results: Dict[str, Any]):
    """Print the integrity report of every decoded log to stderr."""
    for file_result in results.values():
        for log_result in file_result['logs']:
            report = log_result.get('report')
            if report is not None:
                print("\n" + report.render(), file=sys.stderr)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.files:
        parser.print_help()
        return 1

    # Setup logging
    setup_logging(args.verbose, args.debug, args.quiet)
    logger = logging.getLogger('blackbox_export.cli')

    try:
        config = create_config_from_args(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading config file: {e}", file=sys.stderr)
        return 1

    # Save configuration if requested
    if args.save_config:
        config.to_file(args.save_config)
        logger.info(f"Configuration saved to: {args.save_config}")

    try:
        exporter = FlightLogExporter(config)
        results = exporter.process_files(args.files)

        if not args.quiet:
            print_reports(results)

        failed = [
            f"{Path(file_path).name} log {log_result['log_index'] + 1}"
            for file_path, file_result in results.items()
            for log_result in file_result['logs'] if not log_result['success']
        ]
        unreadable = [file_path for file_path, file_result in results.items()
                      if 'error' in file_result]

        if failed:
            logger.warning(f"Logs that couldn't be fully decoded: {', '.join(failed)}")

        return 1 if unreadable and len(unreadable) == len(results) else 0

    except LogSelectionError as e:
        print(str(e), file=sys.stderr)
        return 1

    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nProcessing interrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        logger.error(f"Export failed: {str(e)}")
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
