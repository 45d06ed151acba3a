"""Filesystem helpers: directories, Xcode-formatted manifests, safe writes."""

from __future__ import annotations

import errno
import json
import logging
import os
import shutil

from .errors import ConfigError, OutputWriteError

_LOGGER = logging.getLogger(__name__)

_PERMISSION_ERRNOS = (errno.EACCES, errno.EPERM)


def ensure_dir(path):
    os.makedirs(path, exist_ok=True)


def format_manifest(value) -> str:
    """Serialise like Xcode: 2-space indent, ``"key" : value``, trailing newline."""
    return json.dumps(value, indent=2, separators=(",", " : ")) + "\n"


def _write(path, data, mode):
    with open(path, mode) as f:
        f.write(data)


def _safe_write(path, data, mode):
    try:
        _write(path, data, mode)
    except OSError as err:
        if err.errno == errno.ENOSPC:
            message = f"Disk full: could not write {path}"
        elif err.errno in _PERMISSION_ERRNOS:
            message = f"Permission denied: could not write {path}"
        else:
            message = f"Failed to write {path}: {err.strerror or err}"
        raise OutputWriteError(message, err.errno) from err
    _LOGGER.debug("wrote %s", path)


def write_manifest(path, value):
    _safe_write(path, format_manifest(value), "w")


def write_binary(path, data: bytes):
    _safe_write(path, data, "wb")


def check_writable(directory):
    """Confirm ``directory`` can be written, or created, without touching disk.

    Walks up to the nearest existing ancestor and checks it is a writable
    directory.
    """
    target = os.path.abspath(directory)
    while not os.path.exists(target):
        parent = os.path.dirname(target)
        if parent == target:
            break
        target = parent
    if not (os.path.isdir(target) and os.access(target, os.W_OK | os.X_OK)):
        raise ConfigError(f"Output directory is not writable: {directory}")


def promote(src, dst):
    """Move ``src`` to ``dst`` atomically; copy+delete across filesystems.

    The destination directory is created here, on the first write into it.
    """
    try:
        ensure_dir(os.path.dirname(dst))
        try:
            os.replace(src, dst)
        except OSError as err:
            if err.errno != errno.EXDEV:
                raise
            _LOGGER.debug("cross-device move, copying %s to %s", src, dst)
            partial = dst + ".part"
            try:
                shutil.copyfile(src, partial)
                os.replace(partial, dst)
            finally:
                if os.path.exists(partial):
                    os.unlink(partial)
            os.unlink(src)
    except OSError as err:
        raise OutputWriteError(f"Failed to move {src} to {dst}: {err}", err.errno) from err
