"""Archive extractor - unpacks an OOXML zip package into a directory tree.

Entries are written one at a time.  Parent directories are created on
demand, so a directory entry that arrives after the files inside it is
harmless.  Each file lands under a temporary name and is renamed into place
once fully written; any failure aborts the whole extraction.
"""

import logging
import os
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from deckplate.errors import ArchiveError

logger = logging.getLogger(__name__)

_PARTIAL_SUFFIX = ".part"


def _target_for(dest: Path, name: str) -> Path:
    """Map an entry name to a path under dest, refusing names that escape it."""
    member = PurePosixPath(name.replace("\\", "/"))
    if member.is_absolute() or ".." in member.parts:
        raise ArchiveError(f"Unsafe entry name in package: {name!r}")
    return dest.joinpath(*member.parts)


def _write_entry(zf: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + _PARTIAL_SUFFIX)
    try:
        with zf.open(info) as src, open(partial, "wb") as out:
            shutil.copyfileobj(src, out)
        os.replace(partial, target)
    except Exception:
        partial.unlink(missing_ok=True)
        raise


def extract_archive(path: str | Path, dest: str | Path) -> list[str]:
    """Extract every entry of the package at ``path`` under ``dest``.

    Parameters
    ----------
    path : str | Path
        The uploaded package.
    dest : str | Path
        A destination root unique to this extraction; created if absent.

    Returns
    -------
    list[str]
        Names of the extracted file entries, in archive order.

    Raises
    ------
    ArchiveError
        If the file is not a zip container or any entry cannot be read or
        written.
    """
    path = Path(path)
    dest = Path(dest)

    if not path.is_file():
        raise ArchiveError(f"Package not found: {path}")
    if not zipfile.is_zipfile(path):
        raise ArchiveError(f"Not a zip-formatted package: {path.name}")

    extracted: list[str] = []
    try:
        dest.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path) as zf:
            for info in zf.infolist():
                target = _target_for(dest, info.filename)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                _write_entry(zf, info, target)
                extracted.append(info.filename)
    except ArchiveError:
        raise
    except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
        raise ArchiveError(f"Corrupt package {path.name}: {exc}") from exc
    except OSError as exc:
        raise ArchiveError(f"Failed to extract {path.name}: {exc}") from exc

    logger.debug("Extracted %d entries from %s into %s", len(extracted), path, dest)
    return extracted
