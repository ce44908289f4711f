"""Classify every entry of a new bundle against a snapshot of the old one.

The new archive is streamed rather than indexed first.  Each entry is either
kept, copied from another path of the old side, added verbatim, or (for the
payload) replaced by a binary delta.  Old paths that never show up in the new
bundle are deleted.
"""
import asyncio
import contextlib
import dataclasses
import logging
import os

from . import archive
from . import manifest
from . import pkgprov
from .delta import DeltaAlgorithm
from .errors import PatchWriteError, PayloadDeltaError, PayloadNotFoundError
from .model import AddDirectory, AddFile, CopyFile, FileActionRecord, KeepFile, PatchFile, RemoveFile
from .platforms import BUNDLE_PAYLOAD_NAMES
from .snapshot import Snapshot
from .writer import PatchWriter, spool_entry

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _writing(name: str):
    # errors writing the output abort the whole diff, only input reads are recovered per entry
    try:
        yield
    except Exception as e:
        raise PatchWriteError(f"failed to write {name} to the patch package: {e}") from e


@dataclasses.dataclass(slots=True)
class DiffPlan:
    actions: list[FileActionRecord]
    copies: dict[str, str]
    deletes: list[str]

    def manifest(self) -> manifest.DiffManifest:
        return manifest.make_manifest(self.copies, self.deletes)

    def of_type(self, action_type) -> list[FileActionRecord]:
        return [x for x in self.actions if isinstance(x, action_type)]

    @property
    def added_files(self) -> list[str]:
        return [x.path for x in self.of_type(AddFile)]

    @property
    def added_directories(self) -> list[str]:
        return [x.path for x in self.of_type(AddDirectory)]


class DiffPlanner:
    def __init__(self, base: Snapshot, writer: PatchWriter, algorithm: DeltaAlgorithm, *, payload_names=BUNDLE_PAYLOAD_NAMES):
        self.base = base
        self.writer = writer
        self.algorithm = algorithm
        self.payload_names = tuple(payload_names)
        self.actions: list[FileActionRecord] = []
        self.copies: dict[str, str] = {}
        self.seen: set[str] = set()
        self.created_dirs: set[str] = set()

    def _record(self, action: FileActionRecord):
        self.actions.append(action)
        logger.debug("%s", action)

    def mark_seen(self, name: str):
        self.seen.add(name)
        parent = pkgprov.parent_dir(name)
        while parent and parent not in self.seen:
            self.seen.add(parent)
            parent = pkgprov.parent_dir(parent)

    def ensure_directory(self, name: str | None):
        """Declare ``name`` and its missing ancestors, parents first."""
        if not name or name in self.created_dirs or self.base.has_directory(name):
            return
        self.ensure_directory(pkgprov.parent_dir(name))
        with _writing(name):
            self.writer.add_directory(name)
        self.created_dirs.add(name)
        self._record(AddDirectory(name))

    async def _patch_payload(self, entry: pkgprov.PackageEntry, package: pkgprov.ZipPackage):
        try:
            new_source = await asyncio.to_thread(package.read_entry, entry)
            delta = await asyncio.to_thread(self.algorithm.diff, self.base.payload, new_source)
        except Exception as e:
            raise PayloadDeltaError(f"cannot create {self.algorithm.name} delta for {entry.name}: {e}") from e
        name = manifest.patch_name(entry.name)
        with _writing(name):
            await asyncio.to_thread(self.writer.add_bytes, name, delta)
        self._record(PatchFile(entry.name, name))
        self.mark_seen(entry.name)

    async def _add_file(self, entry: pkgprov.PackageEntry, package: pkgprov.ZipPackage):
        # a failed read propagates as is and only costs this entry
        spool = await asyncio.to_thread(spool_entry, package, entry)
        with spool, _writing(entry.name):
            await asyncio.to_thread(self.writer.add_entry, entry, spool)
        self._record(AddFile(entry.name))
        self.mark_seen(entry.name)

    def visit(self, entry: pkgprov.PackageEntry, package: pkgprov.ZipPackage):
        name = entry.name
        if entry.is_dir:
            if not self.base.has_directory(name):
                self.ensure_directory(name)
            self.mark_seen(name)
            return None

        if name in self.seen:
            logger.warning("ignoring duplicate entry %s", name)
            return None

        if name in self.payload_names:
            return self._patch_payload(entry, package)

        base_checksum = self.base.files.get(name)
        if base_checksum == entry.checksum:
            if self.base.kind == "package":
                # the new bundle is assembled from scratch, unchanged files must be listed
                self.copies[name] = ''
            self._record(KeepFile(name))
            self.mark_seen(name)
            return None

        source = self.base.by_checksum.get(entry.checksum)
        if source is not None:
            self.ensure_directory(pkgprov.parent_dir(name))
            self.copies[name] = source
            self._record(CopyFile(name, source))
            self.mark_seen(name)
            return None

        self.ensure_directory(pkgprov.parent_dir(name))
        return self._add_file(entry, package)

    def collect_deletes(self) -> list[str]:
        if self.base.kind != "bundle":
            return []
        deletes = [x for x in self.base.paths() if x not in self.seen]
        for x in deletes:
            logger.info("Delete %s", x)
            self._record(RemoveFile(x))
        return deletes

    async def run(self, next_path: os.PathLike) -> DiffPlan:
        await archive.enum_entries(next_path, self.visit)
        if not any(isinstance(x, PatchFile) for x in self.actions):
            raise PayloadNotFoundError(os.fspath(next_path), self.payload_names)
        deletes = self.collect_deletes()
        return DiffPlan(self.actions, dict(self.copies), deletes)
