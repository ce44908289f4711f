import logging
import os
import zipfile

from . import iohelper
from .errors import UsageError

logger = logging.getLogger(__name__)

EXCLUDED_NAMES = {'index.bundlejs.map'}


def pack_directory(directory: os.PathLike, output: os.PathLike) -> list[str]:
    """Zip a bundle output directory into an update bundle (ppk).

    Directories are stored as ``name/`` entries ahead of their contents.
    Returns the entry names in the order they were written.
    """
    directory = os.fspath(directory)
    if not os.path.isdir(directory):
        raise UsageError(f"no such directory: {directory}")
    names = []
    iohelper.ensure_parent_dir(output)
    with iohelper.safe_output_fileobj(os.fspath(output), 'wb') as f:
        with zipfile.ZipFile(f, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
            def add_directory(root, rel):
                if rel:
                    zf.write(root, rel)
                    names.append(rel)
                for name in sorted(os.listdir(root)):
                    if name in EXCLUDED_NAMES:
                        continue
                    full_path = os.path.join(root, name)
                    if os.path.isfile(full_path):
                        logger.info("adding: %s%s", rel, name)
                        zf.write(full_path, rel + name)
                        names.append(rel + name)
                    elif os.path.isdir(full_path):
                        add_directory(full_path, rel + name + '/')
            add_directory(directory, '')
    return names
