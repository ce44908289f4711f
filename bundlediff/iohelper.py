import os
import random
from contextlib import contextmanager

def read_file(path: os.PathLike) -> bytes:
    with open(path, 'rb') as f:
        return f.read()

def write_file(path: os.PathLike, data: bytes) -> None:
    with safe_output_fileobj(path, 'wb') as f:
        f.write(data)

def staging_name(name: os.PathLike) -> str:
    return os.fspath(name) + f'.tmp{os.getpid():X}{random.randint(0, 0x7FFFFFFF):08X}'

def ensure_parent_dir(name: os.PathLike):
    parent = os.path.dirname(os.fspath(name))
    if parent:
        os.makedirs(parent, exist_ok=True)

def format_size(size):
    if size < 1024:
        return f"{size} B"
    size /= 1024
    if size < 1024:
        return f"{size:.1f} KiB"
    size /= 1024
    if size < 1024:
        return f"{size:.1f} MiB"
    size /= 1024
    return f"{size:.1f} GiB"

@contextmanager
def safe_output_filename(name: os.PathLike):
    tmpfile = staging_name(name)
    try:
        yield tmpfile
        os.replace(tmpfile, name)
    except BaseException:
        if os.path.exists(tmpfile):
            os.unlink(tmpfile)
        raise

@contextmanager
def safe_output_fileobj(name: os.PathLike, mode: str = 'wb', *open_args, **open_kwargs):
    assert mode[0] == 'w'
    tmpfile = staging_name(name)
    try:
        with open(tmpfile, mode, *open_args, **open_kwargs) as f:
            yield f
        os.replace(tmpfile, name)
    except BaseException:
        if os.path.exists(tmpfile):
            os.unlink(tmpfile)
        raise
