"""
Resolve an input path to a local dataset file.

Inputs come in three shapes:

- a plain NetCDF file, used in place;
- a tar (optionally compressed) or zip archive, from which the first member
  matching the dataset pattern is extracted into the run's workspace;
- a remote URL (``s3://``, ``gs://``, ``https://``...), which is first copied
  into the workspace through fsspec, then handled as one of the above.

Examples
--------
>>> from coldbar.data_access import ArchiveResolver, Workspace
>>>
>>> with Workspace() as ws:
...     resolver = ArchiveResolver(ws)
...     dataset = resolver.resolve("data.tar", is_archive=True)
...     dataset.name
'grid.nc'
"""

from __future__ import annotations

import fnmatch
import tarfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Any

import fsspec
from structlog import get_logger

from .errors import NoDatasetInArchiveError, NotFoundError
from .workspace import Workspace

log = get_logger()

DATASET_PATTERN = "*.nc"


def is_remote(path: str | Path) -> bool:
    """Whether ``path`` is a URL handled by fsspec rather than a local path."""
    return "://" in str(path) and not str(path).startswith("file://")


class ArchiveResolver:
    """
    Turn an input path into the path of a dataset file on local disk.

    Parameters
    ----------
    workspace : Workspace
        Active workspace receiving extracted members and downloads.
    pattern : str, default "*.nc"
        ``fnmatch`` pattern selecting dataset members inside archives.
    storage_options : dict, optional
        Options passed to fsspec for remote inputs (for S3 these reach s3fs:
        ``key``, ``secret``, ``anon``, ...).
    """

    def __init__(
        self,
        workspace: Workspace,
        pattern: str = DATASET_PATTERN,
        storage_options: dict[str, Any] | None = None,
    ) -> None:
        self.workspace = workspace
        self.pattern = pattern
        self.storage_options = storage_options or {}

    def resolve(self, path: str | Path, is_archive: bool = False) -> Path:
        """
        Return a local dataset file for ``path``.

        Parameters
        ----------
        path : str or Path
            Dataset file, archive, or remote URL of either.
        is_archive : bool, default False
            Treat ``path`` as an archive and extract its first dataset member.

        Returns
        -------
        Path
            The input itself (made absolute) or the extracted member.

        Raises
        ------
        NotFoundError
            If the input does not exist.
        NoDatasetInArchiveError
            If no archive member matches the dataset pattern.
        """
        local = self._localize(path)
        if not is_archive:
            return local

        member = self._first_match(local)
        target = self._extract(local, member, self.workspace.subdir("extracted"))
        log.info("archive.extracted", archive=str(local), member=member)
        return target

    def list_datasets(self, path: str | Path) -> list[str]:
        """All archive members matching the dataset pattern, in archive order."""
        local = self._localize(path)
        return [name for name in list_members(local) if fnmatch.fnmatch(name, self.pattern)]

    def _localize(self, path: str | Path) -> Path:
        if is_remote(path):
            return self._download(str(path))

        local = Path(str(path).removeprefix("file://")).expanduser()
        if not local.is_file():
            raise NotFoundError(f"Input file not found: {path}")
        return local.resolve()

    def _download(self, url: str) -> Path:
        fs, remote = fsspec.core.url_to_fs(url, **self.storage_options)
        if not fs.isfile(remote):
            raise NotFoundError(f"Input file not found: {url}")
        target = self.workspace.subdir("download") / PurePosixPath(remote).name
        fs.get(remote, str(target))
        log.info("input.downloaded", url=url, path=str(target))
        return target

    def _first_match(self, archive: Path) -> str:
        for name in list_members(archive):
            if fnmatch.fnmatch(name, self.pattern):
                return name
        raise NoDatasetInArchiveError(
            f"No member matching '{self.pattern}' in archive {archive}"
        )

    @staticmethod
    def _extract(archive: Path, member: str, dest: Path) -> Path:
        if zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive) as zip_file:
                return Path(zip_file.extract(member, dest))
        with tarfile.open(archive) as tar_file:
            tar_file.extract(member, dest, filter="data")
        return dest / member


def list_members(archive: Path) -> list[str]:
    """
    Names of the regular file members of a tar or zip archive, in archive order.

    Raises
    ------
    NoDatasetInArchiveError
        If the file is neither a zip nor a tar archive.
    """
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zip_file:
            return [info.filename for info in zip_file.infolist() if not info.is_dir()]
    if tarfile.is_tarfile(archive):
        with tarfile.open(archive) as tar_file:
            return [member.name for member in tar_file.getmembers() if member.isfile()]
    raise NoDatasetInArchiveError(f"File is neither a zip nor a tar file: {archive}")
