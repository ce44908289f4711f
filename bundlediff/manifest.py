import json
from typing import TypedDict, Literal

MANIFEST_NAME = '__diff.json'
"""Reserved entry name of the manifest, always the last entry of a patch package."""

PATCH_SUFFIX = '.patch'

class DiffManifest(TypedDict):
    """The patch manifest

    * has path `__diff.json`, MUST be the last entry of the patch package
    * no file of an application bundle may use this name

    Files of the new bundle that appear in neither `copies` nor `deletes` and
    have no entry of their own in the patch package are kept as they are.
    Newly added files are stored verbatim under their own path, the payload
    is stored as `<payload name>.patch` and reconstructed from the old payload.
    """
    copies: dict[str, str]
    """Maps a path in the new bundle to the path in the old package it is copied from.

    An empty string means the file is taken from the same path.
    Only packages built against a native installer (apk/app/ipa) use the empty string form."""
    deletes: dict[str, Literal[1]]
    """Paths of the old bundle that are removed. The value is always `1`."""


def patch_name(payload_name: str) -> str:
    return payload_name + PATCH_SUFFIX


def make_manifest(copies: dict[str, str], deletes) -> DiffManifest:
    return {
        "copies": dict(copies),
        "deletes": {x: 1 for x in deletes},
    }


def dump_manifest(m: DiffManifest) -> bytes:
    return json.dumps(m, indent=None, ensure_ascii=False).encode('utf-8')


def load_manifest(data: bytes) -> DiffManifest:
    m = json.loads(data)
    return {
        "copies": m.get("copies", {}),
        "deletes": m.get("deletes", {}),
    }
