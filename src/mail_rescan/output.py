# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Output writer for rewritten messages.

Rewritten copies go to a ``rescan`` directory beside the folder's ``cur``
directory; the source file is never opened for writing.
"""

from __future__ import annotations

import logging
import os
import tempfile

from .errors import OutputError
from .maildir import CURRENT_DIR

logger = logging.getLogger(__name__)

RESCAN_DIR = "rescan"


def generate_output_path(pathname: str) -> str:
    """Derive the output path for a message and create its directory.

    ``.../Maildir/.lists/cur/17.eml`` becomes ``.../Maildir/.lists/rescan/17.eml``.

    Raises:
        OutputError: If the source is not inside a ``cur`` directory or the
            output directory cannot be created.
    """
    file_path, file_name = os.path.split(pathname)
    parent, dir_name = os.path.split(file_path)
    if dir_name != CURRENT_DIR:
        raise OutputError(f"dir not {CURRENT_DIR}: {file_path}", path=pathname)

    out_dir = os.path.join(parent, RESCAN_DIR)
    try:
        os.makedirs(out_dir, mode=0o700, exist_ok=True)
    except OSError as exc:
        raise OutputError(f"failed creating output path: {exc}", path=pathname) from exc

    out_path = os.path.join(out_dir, file_name)
    logger.debug("generate_output_path: %s -> %s", pathname, out_path)
    return out_path


def write_message(out_path: str, data: bytes) -> None:
    """Write ``data`` to ``out_path`` atomically.

    The bytes land in a temporary file in the same directory which is then
    renamed over ``out_path``; a failure leaves no file behind.

    Raises:
        OutputError: If writing or renaming fails.
    """
    out_dir = os.path.dirname(out_path)
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".rescan-", dir=out_dir)
    except OSError as exc:
        raise OutputError(f"failed opening output file: {exc}", path=out_path) from exc
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
        os.replace(tmp_path, out_path)
    except OSError as exc:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise OutputError(f"failed writing output file: {exc}", path=out_path) from exc
    logger.debug("wrote %d bytes to %s", len(data), out_path)


__all__ = ["RESCAN_DIR", "generate_output_path", "write_message"]
