"""KMZ archive unpacking.

A KMZ is a zip archive wrapping a KML document (plus optional icons).
NHC KMZ products ship exactly one relevant ``.kml`` entry.
"""

from __future__ import annotations

import io
import logging
import lzma
import zipfile
import zlib

from nhc_proxy.core.exceptions import PermanentError

logger = logging.getLogger("nhc_proxy.parsers.kmz")

KML_SUFFIX = ".kml"

# Raised by ZipFile.read() (deflate, bzip2, lzma) or the UTF-8 decode of one entry.
_ENTRY_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    lzma.LZMAError,
    OSError,
    NotImplementedError,
    RuntimeError,
    EOFError,
    UnicodeDecodeError,
)


class KmzError(PermanentError):
    """Base class for KMZ unpacking failures."""

    default_stage = "unpack_kmz"
    default_code = "KMZ_READ_FAILED"


class ArchiveReadError(KmzError):
    """Raised when the bytes cannot be opened as a zip archive."""

    default_code = "KMZ_ARCHIVE_UNREADABLE"


class EntryReadError(KmzError):
    """Raised when the matched KML entry cannot be decompressed or decoded."""

    default_code = "KMZ_ENTRY_UNREADABLE"


class NoKmlFoundError(KmzError):
    """Raised when no archive entry has a ``.kml`` suffix."""

    default_code = "KMZ_NO_KML"


def unpack_kmz(archive_bytes: bytes) -> str:
    """Return the UTF-8 text of the first ``.kml`` entry in a KMZ archive.

    Entries are scanned in archive order; once a match is found the
    remaining entries are not examined.

    Raises:
        ArchiveReadError: If the archive cannot be opened.
        EntryReadError: If the matched entry cannot be read.
        NoKmlFoundError: If no entry name ends with ``.kml``.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(archive_bytes))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
        msg = f"Failed to read KMZ file: {exc}"
        raise ArchiveReadError(msg) from exc

    with archive:
        for info in archive.infolist():
            if not info.filename.endswith(KML_SUFFIX):
                continue
            try:
                content = archive.read(info).decode("utf-8")
            except _ENTRY_ERRORS as exc:
                msg = f"Failed to read KML entry {info.filename!r}: {exc}"
                raise EntryReadError(msg) from exc
            logger.debug(
                "Unpacked KML entry | entry=%s | bytes=%d",
                info.filename,
                info.file_size,
            )
            return content

    msg = "No KML file found in KMZ archive"
    raise NoKmlFoundError(msg)
