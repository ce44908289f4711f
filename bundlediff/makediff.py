import asyncio
import dataclasses
import logging
import os
import sys

from . import iohelper
from . import platforms
from .delta import DeltaAlgorithm
from .errors import UsageError
from .planner import DiffPlan, DiffPlanner
from .snapshot import read_snapshot
from .writer import PatchWriter

assert sys.version_info >= (3, 11)  # for ZipFile(metadata_encoding)

logger = logging.getLogger(__name__)


@dataclasses.dataclass(slots=True)
class DiffResult:
    output: str
    plan: DiffPlan
    size: int


def check_input(path) -> str:
    if not path:
        raise UsageError("both <origin> and <next> packages are required")
    path = os.fspath(path)
    if not os.path.isfile(path):
        raise UsageError(f"no such package: {path}")
    return path


async def diff_packages(origin: os.PathLike, next_: os.PathLike, output: os.PathLike,
                        layout: platforms.PackageLayout, algorithm: DeltaAlgorithm) -> DiffResult:
    """Write a patch package to ``output`` that turns ``origin`` into ``next_``.

    ``origin`` is read according to ``layout``, ``next_`` is always an update
    bundle. Nothing is created at ``output`` unless the whole diff succeeds.
    """
    origin = check_input(origin)
    next_ = check_input(next_)
    output = os.fspath(output)

    base = await read_snapshot(origin, layout)

    iohelper.ensure_parent_dir(output)
    with iohelper.safe_output_fileobj(output, 'wb') as f:
        with PatchWriter(f) as writer:
            planner = DiffPlanner(base, writer, algorithm)
            plan = await planner.run(next_)
            writer.write_manifest(plan.manifest())

    size = os.path.getsize(output)
    logger.info("%s: %d added, %d copied, %d deleted, %d new directories (%s, %s)",
                output, len(plan.added_files), len(plan.copies), len(plan.deletes),
                len(plan.added_directories), algorithm.name, iohelper.format_size(size))
    return DiffResult(output, plan, size)


def make_diff(origin, next_, output, layout: platforms.PackageLayout, algorithm: DeltaAlgorithm) -> DiffResult:
    return asyncio.run(diff_packages(origin, next_, output, layout, algorithm))
