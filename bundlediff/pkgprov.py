from typing import Protocol, BinaryIO
import dataclasses
import zipfile
import os
import calendar
import shutil
import struct

COPY_BUFFER_SIZE = 262144

class Package(Protocol):
    path: str
    prefix: str
    def get_entries(self) -> list['PackageEntry']:
        ...
    def get_entry(self, name) -> 'PackageEntry':
        ...
    def open_entry(self, entry: 'PackageEntry | str') -> BinaryIO:
        ...
    def close(self) -> None:
        ...

@dataclasses.dataclass(slots=True, frozen=True)
class PackageEntry:
    name: str
    """logical path, prefixed with the names of enclosing containers"""
    size: int
    checksum_type: str
    checksum: bytes
    is_dir: bool = False
    arcname: str = dataclasses.field(default='', compare=False)
    """name inside the container that holds this entry"""
    mtime: int | float = dataclasses.field(default=0, compare=False)
    mode: int = dataclasses.field(default=0o100644, compare=False)


def parent_dir(name: str) -> str | None:
    """``a/b/c`` and ``a/b/c/`` both give ``a/b/``; top-level names give None."""
    stripped = name.rstrip('/')
    idx = stripped.rfind('/')
    if idx <= 0:
        return None
    return stripped[:idx + 1]


class ZipPackage:
    def __init__(self, zipf: os.PathLike | zipfile.ZipFile, prefix: str = ''):
        if isinstance(zipf, zipfile.ZipFile):
            self.zipf = zipf
            self.path = zipf.filename or ''
        else:
            self.zipf = zipfile.ZipFile(zipf, "r", metadata_encoding="utf-8")
            self.path = os.fspath(zipf) if isinstance(zipf, (str, os.PathLike)) else ''
        self.prefix = prefix
        self.entries = []
        self.entries_map = {}
        for x in self.zipf.infolist():
            is_dir = x.is_dir()
            mode = x.external_attr >> 16
            if mode == 0:
                mode = 0o40755 if is_dir else 0o100644
            mtime = calendar.timegm(x.date_time)
            checksum = b'' if is_dir else struct.pack('>I', x.CRC)
            entry = PackageEntry(prefix + x.filename, x.file_size, "crc32", checksum, is_dir, x.filename, mtime, mode)
            self.entries.append(entry)
            self.entries_map[entry.name] = entry
    def get_entry(self, name):
        return self.entries_map[name]
    def get_entries(self):
        return self.entries
    def open_entry(self, entry: PackageEntry | str):
        if isinstance(entry, str):
            entry = self.entries_map[entry]
        return self.zipf.open(entry.arcname)
    def read_entry(self, entry: PackageEntry | str) -> bytes:
        with self.open_entry(entry) as f:
            return f.read()
    def extract_entry(self, entry: PackageEntry | str, target: os.PathLike):
        with self.open_entry(entry) as zf, open(target, 'wb') as f:
            shutil.copyfileobj(zf, f, COPY_BUFFER_SIZE)
    def close(self):
        self.zipf.close()
