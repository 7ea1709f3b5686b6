#!/usr/bin/env python3
"""
Coldbar Example: NetCDF Minimum Temperatures to a PostgreSQL COPY File

This example demonstrates how to use Coldbar to inspect a NetCDF dataset,
infer its extraction configuration, and write its records to a header-less
CSV file for PostgreSQL ``COPY``.

Features demonstrated:
- Metadata inspection
- Configuration inference and reuse
- Extraction to a COPY file
- Summarising the output with Polars
- Rotated-pole datasets inside tar archives

The examples need the NCO ``ncks`` executable on PATH (or ``$COLDBAR_NCKS``)
and a dataset path given on the command line.
"""

import sys
from pathlib import Path

import polars as pl

from coldbar import ExtractionPipeline, build_copy_file, explain_dataset, infer_config
from coldbar.data_access import ColdbarError


def explain_example(source):
    """Print the variables and dimensions of a dataset."""
    print("=" * 60)
    print("Explain Example: Dataset Metadata")
    print("=" * 60)

    try:
        report = explain_dataset(source)
        declarations = [line for line in report.splitlines() if ": type " in line]
        print(f"Variables ({len(declarations)}):")
        for line in declarations:
            print(f"  {line.split(',')[0]}")
    except ColdbarError as e:
        print(f"Error in explain example: {e}")


def configure_example(source, varname):
    """Infer the configuration and save it for later runs."""
    print("\n" + "=" * 60)
    print("Configure Example: Inferred Configuration")
    print("=" * 60)

    try:
        config = infer_config(source, varname)
        print(config.to_text(), end="")

        cfg_path = Path(source).with_suffix(".cfg")
        cfg_path.write_text(config.to_text())
        print(f"\nConfiguration saved to {cfg_path}")
        return cfg_path
    except ColdbarError as e:
        print(f"Error in configure example: {e} (stage: {e.stage})")
        return None


def build_example(source, varname):
    """Write the COPY file and summarise it."""
    print("\n" + "=" * 60)
    print("Build Example: COPY File")
    print("=" * 60)

    destination = Path(source).with_suffix(".csv")
    try:
        result = build_copy_file(source, destination, varname=varname)
    except ColdbarError as e:
        print(f"Error in build example: {e} (stage: {e.stage})")
        return

    print(f"Data saved to {result.destination}")
    print(f"Rows: {result.rows}")
    print(f"Time steps: {result.config.time_size}")
    print(f"Time origin: {result.config.time_origin}")

    if result.rows == 0:
        return

    df = pl.read_csv(
        result.destination,
        has_header=False,
        new_columns=["time", "x", "y", "value"],
        schema_overrides={"value": pl.Float64},
    )
    missing = result.config.missing_value
    valid = df.filter(pl.col("value") != missing) if missing is not None else df

    print(f"\nMissing-value records: {df.height - valid.height}")
    if valid.height > 0:
        print(f"Min: {valid['value'].min():.2f}")
        print(f"Max: {valid['value'].max():.2f}")
        print(f"Mean: {valid['value'].mean():.2f}")

        coldest = valid.sort("value").head(5)
        print("\nColdest records:")
        print(coldest)


def config_file_example(source, cfg_path):
    """Rerun the extraction from a saved configuration."""
    print("\n" + "=" * 60)
    print("Config File Example")
    print("=" * 60)

    if cfg_path is None:
        print("No configuration file available, skipping")
        return

    try:
        pipeline = ExtractionPipeline(source, config_path=cfg_path, chunk_size=50000)
        result = pipeline.run(Path(source).with_suffix(".from_cfg.csv"))
        print(f"Rows from saved configuration: {result.rows}")
    except ColdbarError as e:
        print(f"Error in config file example: {e} (stage: {e.stage})")


def rotated_archive_example():
    """Show how a rotated-pole dataset inside a tar archive is built."""
    print("\n" + "=" * 60)
    print("Rotated Archive Example")
    print("=" * 60)

    print("To build from the first NetCDF file of a tar archive on a rotated grid:")
    print("")
    print("from coldbar import build_copy_file")
    print("")
    print("result = build_copy_file(")
    print("    'eobs_tn_2000.tar',")
    print("    'eobs_tn_2000.csv',")
    print("    varname='tn',")
    print("    is_archive=True,")
    print("    rotated=True,")
    print(")")
    print("")
    print("Rows then hold (time, lon, lat, value) instead of grid positions.")


def main():
    """Run all examples."""
    if len(sys.argv) < 2:
        print("Usage: basic_usage.py <dataset.nc> [varname]")
        sys.exit(1)

    source = sys.argv[1]
    varname = sys.argv[2] if len(sys.argv) > 2 else "tmin"

    print("Coldbar Examples")
    print("================")

    explain_example(source)
    cfg_path = configure_example(source, varname)
    build_example(source, varname)
    config_file_example(source, cfg_path)
    rotated_archive_example()

    print("\n" + "=" * 60)
    print("Examples Complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
