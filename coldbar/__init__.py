"""
Coldbar: Locate low-temperature land areas using NetCDF data and PostgreSQL.

This package extracts minimum-temperature grid time-series from gridded
NetCDF climate datasets and writes them as flat, header-less CSV records for
bulk loading into PostgreSQL with ``COPY``.

The extraction is driven by the dataset's own metadata: given a loose,
case-insensitive variable name, Coldbar finds the temperature variable, the
order of its time/latitude/longitude dimensions, the time origin, the number
of time steps and the missing-value sentinel without any manual coordinate
configuration.

Key Features
------------
- Configuration inference from ``ncks`` metadata reports
- Reusable key/value configuration files
- Plain NetCDF files, tar/zip archives and remote (S3) inputs
- Rotated-pole grids with explicit 2-D longitude/latitude variables
- Chunked streaming of record dumps through Polars
- Scoped temporary workspaces removed on every exit path

Basic Usage
-----------
>>> import coldbar
>>>
>>> result = coldbar.build_copy_file(
...     "tmin_2000.nc", "tmin_2000.csv", varname="TMIN"
... )
>>> result.config.time_size
365

Advanced Usage
--------------
>>> # Inspect and save the inferred configuration, then reuse it
>>> config = coldbar.infer_config("eobs.tar", "tn", is_archive=True, rotated=True)
>>> Path("eobs.cfg").write_text(config.to_text())
>>>
>>> pipeline = coldbar.ExtractionPipeline(
...     "eobs.tar", is_archive=True, config_path="eobs.cfg", chunk_size=50000
... )
>>> pipeline.run("eobs.csv")

See Also
--------
polars : Fast DataFrame library for Python
fsspec : Filesystem interfaces for remote inputs
NCO : netCDF Operators, providing the ``ncks`` dump tool
"""

from .data_access import (
    Config,
    ExtractionPipeline,
    build_copy_file,
    explain_dataset,
    infer_config,
)

__version__ = "0.1.0"
__all__ = [
    "build_copy_file",
    "infer_config",
    "explain_dataset",
    "ExtractionPipeline",
    "Config",
]
