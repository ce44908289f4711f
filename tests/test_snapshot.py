import asyncio
import zlib
import struct

import pytest

from bundlediff import platforms
from bundlediff.errors import ArchiveError, PayloadNotFoundError
from bundlediff.snapshot import Snapshot, read_snapshot

from conftest import build_zip


def crc(data: bytes) -> bytes:
    return struct.pack('>I', zlib.crc32(data))


def test_bundle_snapshot(zip_factory):
    path = zip_factory("v1.ppk", {
        "index.bundlejs": b"X",
        "assets/": None,
        "assets/logo.png": b"P",
        "assets/copy.png": b"P",
        "assets/img/a.png": b"A",
    })
    snapshot = asyncio.run(read_snapshot(path, platforms.PPK))

    assert snapshot.kind == "bundle"
    assert snapshot.payload_name == "index.bundlejs"
    assert snapshot.payload == b"X"
    assert snapshot.files["assets/logo.png"] == crc(b"P")
    # last writer wins on duplicate content
    assert snapshot.by_checksum[crc(b"P")] == "assets/copy.png"
    assert snapshot.has_directory("assets/")
    # implied by a file path even without a directory entry
    assert snapshot.has_directory("assets/img/")
    assert snapshot.paths() == ["index.bundlejs", "assets/", "assets/logo.png", "assets/copy.png", "assets/img/a.png"]


def test_harmony_bundle_payload(zip_factory):
    path = zip_factory("v1.ppk", {"bundle.harmony.js": b"H"})
    snapshot = asyncio.run(read_snapshot(path, platforms.PPK))
    assert snapshot.payload_name == "bundle.harmony.js"
    assert snapshot.payload == b"H"


def test_snapshot_without_reverse_map(zip_factory):
    path = zip_factory("v1.ppk", {"index.bundlejs": b"X", "a.txt": b"a"})
    snapshot = asyncio.run(read_snapshot(path, platforms.PPK, reverse=False))
    assert snapshot.by_checksum == {}
    assert set(snapshot.files) == {"index.bundlejs", "a.txt"}


def test_missing_payload_is_fatal(zip_factory):
    path = zip_factory("v1.ppk", {"main.js": b"X"})
    with pytest.raises(PayloadNotFoundError) as excinfo:
        asyncio.run(read_snapshot(path, platforms.PPK))
    assert "index.bundlejs" in str(excinfo.value)


def test_apk_snapshot_skips_directories(zip_factory):
    path = zip_factory("app.apk", {
        "assets/": None,
        "assets/index.android.bundle": b"X",
        "res/drawable/icon.png": b"I",
        "classes.dex": b"D",
    })
    snapshot = asyncio.run(read_snapshot(path, platforms.APK))
    assert snapshot.kind == "package"
    assert snapshot.payload == b"X"
    assert snapshot.directories == set()
    assert snapshot.by_checksum[crc(b"I")] == "res/drawable/icon.png"


def test_ipa_transform_strips_app_root(zip_factory):
    path = zip_factory("app.ipa", {
        "Payload/": None,
        "Payload/Demo.app/main.jsbundle": b"X",
        "Payload/Demo.app/assets/logo.png": b"P",
        "iTunesMetadata.plist": b"M",
    })
    snapshot = asyncio.run(read_snapshot(path, platforms.IPA))
    assert snapshot.payload == b"X"
    assert set(snapshot.files) == {"main.jsbundle", "assets/logo.png"}


def test_harmony_app_payload_inside_hap(zip_factory):
    hap = build_zip({
        "resources/rawfile/bundle.harmony.js": b"H",
        "resources/rawfile/assets/logo.png": b"P",
    })
    path = zip_factory("app.app", {"pack.info": b"{}", "entry-default.hap": hap})
    snapshot = asyncio.run(read_snapshot(path, platforms.HARMONY_APP))
    assert snapshot.payload_name == "resources/rawfile/bundle.harmony.js"
    assert snapshot.payload == b"H"
    assert "resources/rawfile/assets/logo.png" in snapshot.files
    assert "pack.info" in snapshot.files


def test_strip_hap_prefix():
    assert platforms.strip_hap_prefix("entry.hap/resources/rawfile/a.png") == "resources/rawfile/a.png"
    assert platforms.strip_hap_prefix("libs/feature.HAP/resources/rawfile/a.png") == "resources/rawfile/a.png"
    assert platforms.strip_hap_prefix("entry.hap/feature.hap/resources/base/b.json") == "resources/base/b.json"
    assert platforms.strip_hap_prefix("entry.hap/feature.hap") == "feature.hap"
    assert platforms.strip_hap_prefix("pack.info") == "pack.info"


def test_harmony_app_payload_in_inner_hap(zip_factory):
    feature = build_zip({"resources/rawfile/bundle.harmony.js": b"H"})
    entry = build_zip({"feature.hap": feature, "module.json": b"{}"})
    path = zip_factory("app.app", {"entry-default.hap": entry})
    snapshot = asyncio.run(read_snapshot(path, platforms.HARMONY_APP))
    assert snapshot.payload_name == "resources/rawfile/bundle.harmony.js"
    assert snapshot.payload == b"H"
    assert "module.json" in snapshot.files


def test_file_without_fingerprint_is_rejected():
    snapshot = Snapshot("bundle")
    with pytest.raises(ArchiveError):
        snapshot.add_file("a.txt", b"")
