import io
import zipfile
import zlib
from pathlib import Path

import pytest

from bundlediff import manifest


def build_zip(entries) -> bytes:
    """``entries`` maps names to bytes, or to None for a directory entry."""
    bio = io.BytesIO()
    with zipfile.ZipFile(bio, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            if data is None:
                zf.writestr(zipfile.ZipInfo(name if name.endswith('/') else name + '/'), b'')
            else:
                zf.writestr(name, data)
    return bio.getvalue()


def read_zip(path) -> dict:
    with zipfile.ZipFile(path) as zf:
        return {x.filename: (None if x.is_dir() else zf.read(x)) for x in zf.infolist()}


def zip_names(path) -> list[str]:
    with zipfile.ZipFile(path) as zf:
        return zf.namelist()


def fingerprints(files: dict) -> dict:
    return {k: zlib.crc32(v) for k, v in files.items() if v is not None}


class RawDelta:
    """Stand-in delta whose "patch" is the new payload itself."""
    name = "raw"
    def diff(self, old: bytes, new: bytes) -> bytes:
        return new


def raw_patch(old: bytes, delta: bytes) -> bytes:
    return delta


def apply_patch(old_files: dict, patch_path, *, kind="bundle", patch=None, old_payload=None) -> dict:
    """Rebuild the new bundle's files from the old side and a patch package.

    ``old_files`` maps logical paths of the old side to bytes (directories as None).
    """
    if patch is None:
        import bsdiff4
        patch = bsdiff4.patch
    contents = read_zip(patch_path)
    m = manifest.load_manifest(contents.pop(manifest.MANIFEST_NAME))

    if kind == "bundle":
        result = {k: v for k, v in old_files.items() if v is not None}
    else:
        result = {}
    for dst, src in m["copies"].items():
        result[dst] = old_files[src or dst]
    for name in m["deletes"]:
        result.pop(name, None)
    for name, data in contents.items():
        if data is None:
            continue
        if name.endswith(manifest.PATCH_SUFFIX):
            if old_payload is None:
                old_payload = old_files.get(name[:-len(manifest.PATCH_SUFFIX)])
            result[name[:-len(manifest.PATCH_SUFFIX)]] = patch(old_payload, data)
        else:
            result[name] = data
    return result


@pytest.fixture
def zip_factory(tmp_path: Path):
    def make(name, entries) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_zip(entries))
        return path
    return make
