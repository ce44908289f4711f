"""Lazy, strictly sequential enumeration of zip containers.

Containers nested inside a container (HarmonyOS ``.hap`` modules inside an
``.app``) are extracted to a private temporary directory and enumerated in
place, their entries prefixed with ``<outer entry name>/``.  The traversal
keeps an explicit stack of open containers instead of recursing.
"""
import asyncio
import dataclasses
import inspect
import logging
import os
import shutil
import tempfile
import zipfile
from typing import Awaitable, Callable, Iterator

from . import pkgprov
from .errors import ArchiveError, BundleDiffError, NestingDepthError

logger = logging.getLogger(__name__)

NESTED_CONTAINER_EXTENSIONS = ('.hap',)
MAX_NESTING_DEPTH = 8

EntryCallback = Callable[[pkgprov.PackageEntry, pkgprov.ZipPackage], Awaitable[None] | None]


@dataclasses.dataclass(slots=True)
class _Frame:
    package: pkgprov.ZipPackage
    entries: Iterator[pkgprov.PackageEntry]
    tempdir: str | None = None

    def close(self):
        try:
            self.package.close()
        finally:
            if self.tempdir is not None:
                shutil.rmtree(self.tempdir, ignore_errors=True)
                logger.debug("removed nested extraction %s", self.tempdir)
                self.tempdir = None


def is_nested_container(entry: pkgprov.PackageEntry, extensions=NESTED_CONTAINER_EXTENSIONS) -> bool:
    return not entry.is_dir and entry.name.lower().endswith(tuple(extensions))


def open_package(path: os.PathLike, prefix: str = '') -> pkgprov.ZipPackage:
    try:
        return pkgprov.ZipPackage(path, prefix)
    except (OSError, zipfile.BadZipFile, ValueError) as e:
        raise ArchiveError(f"cannot open archive {os.fspath(path)}: {e}") from e


def _extract_nested(package: pkgprov.ZipPackage, entry: pkgprov.PackageEntry) -> _Frame:
    tempdir = tempfile.mkdtemp(prefix='bundlediff-nested-')
    try:
        target = os.path.join(tempdir, 'nested.zip')
        package.extract_entry(entry, target)
        nested = open_package(target, entry.name + '/')
    except BaseException:
        shutil.rmtree(tempdir, ignore_errors=True)
        raise
    return _Frame(nested, iter(nested.get_entries()), tempdir)


async def enum_entries(path: os.PathLike, callback: EntryCallback, *,
                       nested_extensions=NESTED_CONTAINER_EXTENSIONS,
                       max_depth: int = MAX_NESTING_DEPTH):
    """Visit every entry of the zip at ``path``, one at a time.

    ``callback(entry, package)`` may return an awaitable; the next entry is
    not read until it has completed.  Failures while handling a single entry
    are logged and skipped unless the callback raises a
    :class:`BundleDiffError`, which aborts the enumeration.  Failure to open
    ``path`` itself raises :class:`ArchiveError`.
    """
    root = await asyncio.to_thread(open_package, path)
    stack = [_Frame(root, iter(root.get_entries()))]
    try:
        while stack:
            frame = stack[-1]
            entry = next(frame.entries, None)
            if entry is None:
                stack.pop().close()
                continue
            package = frame.package

            if is_nested_container(entry, nested_extensions):
                try:
                    if len(stack) > max_depth:
                        raise NestingDepthError(f"{entry.name}: nested containers deeper than {max_depth} levels")
                    stack.append(await asyncio.to_thread(_extract_nested, package, entry))
                    logger.debug("descending into %s", entry.name)
                except Exception:
                    logger.exception("failed to open nested container %s", entry.name)

            try:
                result = callback(entry, package)
                if inspect.isawaitable(result):
                    await result
            except BundleDiffError:
                raise
            except Exception:
                logger.exception("failed to process entry %s", entry.name)
    finally:
        while stack:
            stack.pop().close()
