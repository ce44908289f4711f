import os
import re
import tempfile
import time
from typing import Mapping, Optional

DEFAULT_DIFF_OUTPUT = '${tempDir}/output/diff-${time}.ppk'
DEFAULT_PACK_OUTPUT = '${tempDir}/output/bundle-${time}.ppk'

_placeholder_re = re.compile(r'\$\{(\w+)\}')


def default_variables() -> dict[str, str]:
    return {"tempDir": tempfile.gettempdir()}


def expand_template(value: str, variables: Optional[Mapping[str, str]] = None, *, now: Optional[float] = None) -> str:
    """Substitute ``${time}`` with the current time in milliseconds and ``${NAME}``
    with ``variables[NAME]`` or the environment variable NAME.

    Unknown placeholders are left as they are.
    """
    if variables is None:
        variables = default_variables()
    if now is None:
        now = time.time()
    timestamp = str(int(now * 1000))

    def replace(m: re.Match) -> str:
        key = m.group(1)
        if key == 'time':
            return timestamp
        return variables.get(key) or os.environ.get(key) or m.group(0)

    return _placeholder_re.sub(replace, value)
