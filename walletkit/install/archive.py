"""Release archive extraction (.zip, .tar.gz, .tgz)."""

import tarfile
import zipfile
from pathlib import Path

from loguru import logger

from walletkit.install.download import InstallError

TAR_SUFFIXES = (".tar.gz", ".tgz")
ZIP_SUFFIXES = (".zip",)


def is_archive(path: Path) -> bool:
    return path.name.lower().endswith(TAR_SUFFIXES + ZIP_SUFFIXES)


def extract_archive(path: Path, dest: Path) -> Path:
    """Unpack *path* into *dest* and return *dest*.

    Raises:
        InstallError: Unknown archive type or a corrupt archive.
    """
    name = path.name.lower()
    dest.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Extracting {path} -> {dest}")

    try:
        if name.endswith(ZIP_SUFFIXES):
            with zipfile.ZipFile(path) as fz:
                fz.extractall(dest)
        elif name.endswith(TAR_SUFFIXES):
            with tarfile.open(path, "r:gz") as ft:
                ft.extractall(dest, filter="data")
        else:
            raise InstallError(f"Unsupported archive type: {path.name}")
    except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
        raise InstallError(f"Unable to extract {path.name}: {e}") from e

    return dest


def find_member(root: Path, file_name: str) -> Path | None:
    """Locate an extracted file by name anywhere under *root*."""
    for candidate in sorted(root.rglob(file_name)):
        if candidate.is_file():
            return candidate
    return None
