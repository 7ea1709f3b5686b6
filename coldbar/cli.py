"""
Command-line interface for Coldbar.

This module provides the ``coldbar`` command for turning NetCDF
minimum-temperature datasets into PostgreSQL COPY files. It is a thin layer
over :mod:`coldbar.data_access`; every option maps onto a keyword argument of
the library functions.

The CLI supports three commands:
- explain: Print dimensions and variables of a NetCDF file
- configure: Print or save the configuration inferred from a dataset
- build: Write a dataset's temperature records to a COPY file

Examples
--------
Inspect the first NetCDF file of a tar archive:
    $ coldbar explain --tar eobs_2000.tar

Save the inferred configuration of a rotated-pole dataset:
    $ coldbar configure eobs.nc --varname tn --rotated --output eobs.cfg

Build a COPY file from a saved configuration:
    $ coldbar build eobs.nc tn_2000.csv --cfg eobs.cfg

Notes
-----
Errors are reported once, with the pipeline stage that raised them, and the
command exits with status 1. Temporary workspaces are removed on every exit
path, including SIGTERM.
"""

import argparse
import json
import signal
import sys
from typing import Optional

from .data_access import build_copy_file, explain_dataset, infer_config


def explain_command(args) -> None:
    """
    Print the metadata report of a dataset.

    Parameters
    ----------
    args : argparse.Namespace
        Command-line arguments containing:
        - source : str
            NetCDF file (or archive with ``--tar``)
        - tar : bool
            Read the first NetCDF member of the archive
        - storage_options : str, optional
            Remote storage options as JSON or key=value pairs

    Examples
    --------
        $ coldbar explain tmin_2000.nc
        $ coldbar explain --tar tmin.tar
    """
    try:
        print(
            explain_dataset(
                args.source,
                is_archive=args.tar,
                storage_options=_parse_storage_options(args.storage_options),
            ),
            end="",
        )
    except Exception as e:
        _fail(e)


def configure_command(args) -> None:
    """
    Infer a dataset's configuration and print it or save it to a file.

    The output uses the key/value format accepted by ``build --cfg``.

    Parameters
    ----------
    args : argparse.Namespace
        Command-line arguments containing:
        - source : str
            NetCDF file (or archive with ``--tar``)
        - varname : str
            Case-insensitive name of the minimum temperature variable
        - tar, rotated : bool
        - storage_options : str, optional
        - output : str, optional
            Configuration file to write
    """
    try:
        config = infer_config(
            args.source,
            args.varname,
            is_archive=args.tar,
            rotated=args.rotated,
            storage_options=_parse_storage_options(args.storage_options),
        )
        text = config.to_text()
        if args.output:
            with open(args.output, "w") as f:
                f.write(text)
            print(f"Configuration saved to {args.output}")
        else:
            print(text, end="")
    except Exception as e:
        _fail(e)


def build_command(args) -> None:
    """
    Write a dataset's minimum-temperature records to a COPY file.

    One of ``--cfg`` and ``--varname`` is required; ``--varname`` is ignored
    when both are given.

    Parameters
    ----------
    args : argparse.Namespace
        Command-line arguments containing:
        - source : str
            NetCDF file (or archive with ``--tar``)
        - destination : str
            Output COPY filename
        - cfg : str, optional
            Configuration file
        - varname : str, optional
            Name of the variable that holds minimum temperature values
        - tar, rotated : bool
        - storage_options : str, optional
        - chunk_size : int

    Examples
    --------
        $ coldbar build tmin_2000.nc tmin_2000.csv --varname tmin
        $ coldbar build --tar --rotated eobs.tar eobs.csv --varname TN
    """
    if not args.cfg and not args.varname:
        print("Provide one of the following options:", file=sys.stderr)
        print("  --cfg <path_to_configuration_file>", file=sys.stderr)
        print("  --varname <minimum_temperature_variable_name>", file=sys.stderr)
        print(
            "The minimum temperature varname option will be ignored, "
            "in case both are provided.",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        result = build_copy_file(
            args.source,
            args.destination,
            varname=args.varname,
            config_path=args.cfg,
            is_archive=args.tar,
            rotated=args.rotated,
            storage_options=_parse_storage_options(args.storage_options),
            chunk_size=args.chunk_size,
        )
        print(f"Data saved to {result.destination}")
        print(f"Rows: {result.rows}")
        print(f"Variable: {result.config.var_display_name}")
    except Exception as e:
        _fail(e)


def _fail(error: Exception) -> None:
    stage = getattr(error, "stage", None)
    suffix = f" (stage: {stage})" if stage else ""
    print(f"Error: {error}{suffix}", file=sys.stderr)
    sys.exit(1)


def _parse_storage_options(storage_options_str: Optional[str]) -> Optional[dict]:
    """
    Parse storage options from command line string.

    Supports both JSON format and simple key=value pair format for
    specifying S3 credentials and other fsspec options.

    Parameters
    ----------
    storage_options_str : str or None
        Storage options as either:
        - JSON string: '{"anon": true}'
        - Key=value pairs: "key=access_key,secret=secret_key"
        - None or empty string

    Returns
    -------
    dict or None
        Parsed storage options dictionary, or None if input is empty

    Examples
    --------
    >>> _parse_storage_options('{"anon": true}')
    {'anon': True}

    >>> _parse_storage_options('key=access,secret=secret')
    {'key': 'access', 'secret': 'secret'}
    """
    if not storage_options_str or not storage_options_str.strip():
        return None

    try:
        return json.loads(storage_options_str)
    except json.JSONDecodeError:
        # Try simple key=value format
        options = {}
        for pair in storage_options_str.split(","):
            if "=" in pair:
                key, value = pair.split("=", 1)
                options[key.strip()] = value.strip()
        return options if options else None


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "source", help="Input NetCDF filename (or tar archive if --tar is given)"
    )
    parser.add_argument(
        "-t",
        "--tar",
        action="store_true",
        help="Read first NetCDF in input tar archive",
    )
    parser.add_argument(
        "--storage-options",
        help="Remote storage options as JSON or key=value,key=value",
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser with the explain, configure and build
        subcommands.

    Examples
    --------
    >>> parser = create_parser()
    >>> args = parser.parse_args(['explain', 'tmin.nc'])
    >>> args.command
    'explain'
    """
    parser = argparse.ArgumentParser(
        prog="coldbar",
        description=(
            "coldbar: Locate low-temperature land areas using NetCDF data "
            "and PostgreSQL"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Explain command
    explain_parser = subparsers.add_parser(
        "explain", help="Print dimensions and variables in the input NetCDF file"
    )
    _add_source_arguments(explain_parser)
    explain_parser.set_defaults(func=explain_command)

    # Configure command
    configure_parser = subparsers.add_parser(
        "configure", help="Print the configuration inferred from a NetCDF file"
    )
    _add_source_arguments(configure_parser)
    configure_parser.add_argument(
        "-v",
        "--varname",
        required=True,
        help="Name of the variable that holds minimum temperature values",
    )
    configure_parser.add_argument(
        "-r",
        "--rotated",
        action="store_true",
        help="Longitude and latitude dimensions refer to a rotated pole grid",
    )
    configure_parser.add_argument("--output", "-o", help="Configuration file to write")
    configure_parser.set_defaults(func=configure_command)

    # Build command
    build_parser = subparsers.add_parser(
        "build", help="Write NetCDF temperature data to a PostgreSQL COPY file"
    )
    _add_source_arguments(build_parser)
    build_parser.add_argument("destination", help="Output COPY filename")
    build_parser.add_argument(
        "-r",
        "--rotated",
        action="store_true",
        help="Longitude and latitude dimensions refer to a rotated pole grid",
    )
    build_parser.add_argument("-c", "--cfg", help="Use configuration file")
    build_parser.add_argument(
        "-v",
        "--varname",
        help="Name of the variable that holds minimum temperature values",
    )
    build_parser.add_argument(
        "--chunk-size",
        type=int,
        default=10000,
        help="Records per processing chunk",
    )
    build_parser.set_defaults(func=build_command)

    return parser


def _terminate(signum, frame) -> None:
    # Unwind through the context managers so workspaces get removed.
    raise SystemExit(128 + signum)


def main() -> None:
    """
    Main CLI entry point.

    Parses command-line arguments and dispatches to the appropriate
    command function. Provides help message if no command is specified.

    Raises
    ------
    SystemExit
        Exits with code 1 if no command is provided or the command fails.

    Examples
    --------
        $ coldbar explain tmin.nc
        $ coldbar build tmin.nc tmin.csv --varname tmin
    """
    parser = create_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    signal.signal(signal.SIGTERM, _terminate)
    args.func(args)


if __name__ == "__main__":
    main()
