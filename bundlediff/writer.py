import logging
import shutil
import tempfile
import time
import zipfile
from typing import BinaryIO

from . import manifest
from . import pkgprov

logger = logging.getLogger(__name__)

SPOOL_MAX_SIZE = 4 * 1024 * 1024


def _date_time(mtime) -> tuple:
    t = time.gmtime(mtime or time.time())
    # zip timestamps start at 1980
    return max(t[:6], (1980, 1, 1, 0, 0, 0))


def spool_entry(package: pkgprov.Package, entry: pkgprov.PackageEntry) -> tempfile.SpooledTemporaryFile:
    """Read ``entry`` fully, so a failing read never leaves a truncated entry in the patch."""
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
    try:
        with package.open_entry(entry) as f:
            shutil.copyfileobj(f, spool, pkgprov.COPY_BUFFER_SIZE)
    except BaseException:
        spool.close()
        raise
    spool.seek(0)
    return spool


class PatchWriter:
    """Builds a patch package in one forward pass.

    The caller owns the file object; wrap it in ``iohelper.safe_output_fileobj``
    so the package only shows up at its final path once it is complete.
    """
    def __init__(self, fileobj: BinaryIO, compression: int = zipfile.ZIP_DEFLATED):
        self.zipf = zipfile.ZipFile(fileobj, 'w', compression=compression)
        self.names: set[str] = set()
        self.finished = False

    def _claim(self, name: str):
        if self.finished:
            raise ValueError("patch package already finished")
        if name == manifest.MANIFEST_NAME:
            raise ValueError(f"{name} is reserved for the patch manifest")
        if name in self.names:
            raise ValueError(f"duplicate entry in patch package: {name}")
        self.names.add(name)

    def add_directory(self, name: str):
        if not name.endswith('/'):
            name += '/'
        self._claim(name)
        zi = zipfile.ZipInfo(name, _date_time(None))
        zi.external_attr = (0o40755 << 16) | 0x10
        self.zipf.writestr(zi, b'')
        logger.debug("add directory %s", name)

    def add_bytes(self, name: str, data: bytes):
        self._claim(name)
        zi = zipfile.ZipInfo(name, _date_time(None))
        zi.external_attr = 0o100644 << 16
        zi.compress_type = self.zipf.compression
        self.zipf.writestr(zi, data)

    def add_entry(self, entry: pkgprov.PackageEntry, fileobj: BinaryIO):
        """Write the contents of ``fileobj`` under the logical name of ``entry``."""
        self._claim(entry.name)
        zi = zipfile.ZipInfo(entry.name, _date_time(entry.mtime))
        zi.external_attr = entry.mode << 16
        zi.compress_type = self.zipf.compression
        # lets zipfile pick zip64 headers up front for large entries
        zi.file_size = entry.size
        with self.zipf.open(zi, 'w') as out:
            shutil.copyfileobj(fileobj, out, pkgprov.COPY_BUFFER_SIZE)

    def write_manifest(self, m: manifest.DiffManifest):
        data = manifest.dump_manifest(m)
        zi = zipfile.ZipInfo(manifest.MANIFEST_NAME, _date_time(None))
        zi.external_attr = 0o100644 << 16
        zi.compress_type = self.zipf.compression
        self.zipf.writestr(zi, data)
        self.finished = True

    def close(self):
        self.zipf.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None and not self.finished:
            self.close()
            raise ValueError("patch package closed without a manifest")
        self.close()
        return False
