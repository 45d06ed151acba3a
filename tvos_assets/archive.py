"""Zip packaging of the generated catalog."""

from __future__ import annotations

import datetime
import logging
import os
import zipfile

from .errors import OutputWriteError

_LOGGER = logging.getLogger(__name__)

ZIP_PREFIX = "tvos-assets"


def format_timestamp(when: datetime.datetime) -> str:
    """``YYYYMMDD-HHmmss`` in local time."""
    return when.strftime("%Y%m%d-%H%M%S")


def zip_filename(when=None) -> str:
    return f"{ZIP_PREFIX}-{format_timestamp(when or datetime.datetime.now())}.zip"


def _add_directory(zf, source, arcname):
    for dirpath, dirnames, filenames in os.walk(source):
        dirnames.sort()
        rel = os.path.relpath(dirpath, source)
        base = arcname if rel == os.curdir else f"{arcname}/{rel.replace(os.sep, '/')}"
        zf.write(dirpath, base + "/")
        for name in sorted(filenames):
            zf.write(os.path.join(dirpath, name), f"{base}/{name}")


def create_zip(entries, zip_path):
    """Write ``(source_path, arcname)`` pairs into ``zip_path``.

    Directories are added recursively under ``arcname/``. A partially written
    archive is removed if anything fails.
    """
    try:
        with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as zf:
            for source, arcname in entries:
                if os.path.isdir(source):
                    _add_directory(zf, source, arcname)
                else:
                    zf.write(source, arcname)
    except OSError as err:
        if os.path.exists(zip_path):
            os.unlink(zip_path)
        raise OutputWriteError(f"Failed to create zip {zip_path}: {err}", err.errno) from err
    _LOGGER.debug("created %s", zip_path)
