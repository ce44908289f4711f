import asyncio
import dataclasses
import logging
import os

from . import archive
from . import pkgprov
from .errors import ArchiveError, PayloadNotFoundError
from .platforms import PackageLayout, SnapshotKind

logger = logging.getLogger(__name__)


@dataclasses.dataclass(slots=True)
class Snapshot:
    kind: SnapshotKind
    files: dict[str, bytes] = dataclasses.field(default_factory=dict)
    """path -> fingerprint"""
    by_checksum: dict[bytes, str] = dataclasses.field(default_factory=dict)
    """fingerprint -> path, the last path read wins"""
    directories: set[str] = dataclasses.field(default_factory=set)
    """explicit directory entries and every ancestor of a recorded path"""
    listing: dict[str, None] = dataclasses.field(default_factory=dict)
    """every entry read, files and directories, in archive order"""
    payload_name: str | None = None
    payload: bytes | None = None

    def has_directory(self, name: str) -> bool:
        return name in self.directories

    def paths(self) -> list[str]:
        return list(self.listing)

    def _add_ancestors(self, name: str):
        parent = pkgprov.parent_dir(name)
        while parent and parent not in self.directories:
            self.directories.add(parent)
            parent = pkgprov.parent_dir(parent)

    def add_file(self, name: str, checksum: bytes, reverse: bool = True):
        if not checksum:
            raise ArchiveError(f"{name}: file entry has no fingerprint")
        self.files[name] = checksum
        self.listing[name] = None
        if reverse:
            self.by_checksum[checksum] = name
        if self.kind == "bundle":
            self._add_ancestors(name)

    def add_directory(self, name: str):
        self.listing[name] = None
        self.directories.add(name)
        self._add_ancestors(name)


async def read_snapshot(path: os.PathLike, layout: PackageLayout, *, reverse: bool = True) -> Snapshot:
    snapshot = Snapshot(layout.kind)

    async def read_payload(name, package, entry):
        data = await asyncio.to_thread(package.read_entry, entry)
        snapshot.payload_name = name
        snapshot.payload = data

    def visit(entry: pkgprov.PackageEntry, package: pkgprov.ZipPackage):
        if entry.is_dir:
            if layout.kind == "bundle":
                snapshot.add_directory(entry.name)
            return None
        name = layout.logical_path(entry.name)
        if not name:
            return None
        snapshot.add_file(name, entry.checksum, reverse)
        if name in layout.payload_names:
            if snapshot.payload_name is not None:
                logger.warning("%s: ignoring extra payload %s, already using %s", path, name, snapshot.payload_name)
                return None
            return read_payload(name, package, entry)
        return None

    await archive.enum_entries(path, visit)

    if snapshot.payload is None:
        raise PayloadNotFoundError(os.fspath(path), layout.payload_names)
    logger.info("read %s snapshot of %s: %d files, payload %s", layout.name, path, len(snapshot.files), snapshot.payload_name)
    return snapshot
