import functools
import logging
import os
import shutil
import subprocess
import tempfile
from typing import Protocol

from . import iohelper
from .errors import AlgorithmUnavailableError

try:
    import bsdiff4
except ImportError:
    bsdiff4 = None

logger = logging.getLogger(__name__)

HDIFFZ_EXECUTABLE = os.environ.get("HDIFFZ", "hdiffz")
# hdiffz -s: block matching (match block size 64), -SD: single compressed diff stream
HDIFFZ_ARGS = ['-s-64', '-SD', '-f']


class DeltaAlgorithm(Protocol):
    name: str
    def diff(self, old: bytes, new: bytes) -> bytes:
        """Return a delta that turns ``old`` into ``new``."""
        ...


class BsdiffAlgorithm:
    name = "bsdiff"

    def diff(self, old: bytes, new: bytes) -> bytes:
        return bsdiff4.diff(old, new)


class HdiffAlgorithm:
    name = "hdiff"

    def __init__(self, executable: str):
        self.executable = executable

    def diff(self, old: bytes, new: bytes) -> bytes:
        with tempfile.TemporaryDirectory(prefix='bundlediff-hdiff-') as tmpdir:
            old_file = os.path.join(tmpdir, 'old')
            new_file = os.path.join(tmpdir, 'new')
            patch_file = os.path.join(tmpdir, 'patch')
            iohelper.write_file(old_file, old)
            iohelper.write_file(new_file, new)
            hdiff_generate_patch(self.executable, old_file, new_file, patch_file)
            return iohelper.read_file(patch_file)


def hdiff_generate_patch(executable, orig_file, new_file, patchfile):
    with iohelper.safe_output_filename(patchfile) as tmpfile:
        subprocess.run([executable, *HDIFFZ_ARGS, orig_file, new_file, tmpfile], check=True, stdout=subprocess.DEVNULL)


KNOWN_ALGORITHMS = {
    "bsdiff": 'Please run "pip install bsdiff4" to install.',
    "hdiff": f'Please install hdiffz from HDiffPatch (https://github.com/sisong/HDiffPatch) and put it on PATH, or set HDIFFZ to its location (currently {HDIFFZ_EXECUTABLE!r}).',
}


@functools.cache
def available_algorithms() -> dict[str, DeltaAlgorithm]:
    """Probe the delta implementations usable in this process, once."""
    registry: dict[str, DeltaAlgorithm] = {}
    if bsdiff4 is not None:
        registry["bsdiff"] = BsdiffAlgorithm()
    hdiffz = shutil.which(HDIFFZ_EXECUTABLE)
    if hdiffz:
        registry["hdiff"] = HdiffAlgorithm(hdiffz)
    logger.debug("available delta algorithms: %s", ', '.join(registry) or 'none')
    return registry


def get_algorithm(name: str) -> DeltaAlgorithm:
    if name not in KNOWN_ALGORITHMS:
        raise ValueError(f"unknown delta algorithm: {name!r}")
    algorithm = available_algorithms().get(name)
    if algorithm is None:
        raise AlgorithmUnavailableError(name, KNOWN_ALGORITHMS[name])
    return algorithm
