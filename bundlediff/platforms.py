import dataclasses
import re
from typing import Callable, Literal, Optional

SnapshotKind = Literal["bundle", "package"]

BUNDLE_PAYLOAD_NAMES = ('index.bundlejs', 'bundle.harmony.js')

@dataclasses.dataclass(slots=True, frozen=True)
class PackageLayout:
    """Where to find the payload in the old side of a diff.

    ``kind`` is ``"bundle"`` for a previous update bundle (ppk) that the client
    keeps on disk, and ``"package"`` for a native installer that the client
    only copies files out of.
    """
    name: str
    kind: SnapshotKind
    payload_names: tuple[str, ...]
    transform: Optional[Callable[[str], Optional[str]]] = None

    def logical_path(self, name: str) -> Optional[str]:
        if self.transform is None:
            return name
        return self.transform(name)


_ipa_payload_re = re.compile(r'^Payload/[^/]+/(.+)$')
# greedy, so everything up to the innermost .hap container is dropped
_hap_prefix_re = re.compile(r'^(?:.*/)?[^/]+\.hap/(.+)$', re.IGNORECASE)

def strip_ipa_root(name: str) -> Optional[str]:
    m = _ipa_payload_re.match(name)
    return m and m.group(1)

def strip_hap_prefix(name: str) -> Optional[str]:
    m = _hap_prefix_re.match(name)
    if m:
        return m.group(1)
    return name


PPK = PackageLayout("ppk", "bundle", BUNDLE_PAYLOAD_NAMES)
APK = PackageLayout("apk", "package", ('assets/index.android.bundle',))
HARMONY_APP = PackageLayout("app", "package", ('resources/rawfile/bundle.harmony.js',), strip_hap_prefix)
IPA = PackageLayout("ipa", "package", ('main.jsbundle',), strip_ipa_root)
