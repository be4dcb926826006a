"""
JSON helpers for documents holding Bits and Bytes values.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import contextlib
import json
import logging
import os
import shutil
import tempfile
from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from .units import ScaledUnit

logger = logging.getLogger(__name__)


# Classes --------------------------------------------------------------------------------------------------------------

class UnitsJSONEncoder(json.JSONEncoder):
    """JSON encoder writing unit values in their text form, e.g. "10MB"."""

    def default(self, o):
        if isinstance(o, ScaledUnit):
            return o.to_text()
        return super().default(o)


# Methods --------------------------------------------------------------------------------------------------------------

def dumps(obj: Any, **kwargs) -> str:
    """json.dumps() with UnitsJSONEncoder as the default encoder class."""
    kwargs.setdefault("cls", UnitsJSONEncoder)
    return json.dumps(obj, **kwargs)


def read_json(path: str | os.PathLike[str], default: Any = None, *, encoding: str = "utf-8") -> Any:
    """
    Read a JSON file.

    Returns:
        The parsed document, or default when the file is missing or is not valid JSON.

    Raises:
        TypeError: path is not a str or os.PathLike.
        OSError: The file exists but cannot be read.
    """
    _check_path(path)
    try:
        with open(path, "r", encoding=encoding) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("JSON file %s not found, using default", path)
        return default
    except json.JSONDecodeError as e:
        logger.debug("JSON file %s is invalid (%s), using default", path, e)
        return default


def write_json(
        path: str | os.PathLike[str],
        data: Any,
        *,
        indent: int | None = 2,
        atomic: bool = True,
        encoding: str = "utf-8",
        ensure_ascii: bool = False,
) -> None:
    """
    Write data as JSON followed by a newline, unit values are stored in their text form.

    With atomic=True the document goes to a temporary file in the target directory first
    and replaces the target with os.replace(); an existing target keeps its permissions and
    the temporary file is removed when any step fails.

    Raises:
        TypeError: path is not a str or os.PathLike, or data is not serializable.
        ValueError: indent is negative.
    """
    _check_path(path)
    if indent is not None and indent < 0:
        raise ValueError(f"indent must be non-negative or None, got {indent}")

    text = dumps(data, indent=indent, ensure_ascii=ensure_ascii) + "\n"
    if not atomic:
        with open(path, "w", encoding=encoding) as f:
            f.write(text)
        return

    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        _copy_mode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_path)
        raise


def _copy_mode(target: str | os.PathLike[str], tmp_path: str) -> None:
    """Give the temporary file the mode of the target, or the umask default for a new file."""
    if os.path.exists(target):
        shutil.copymode(target, tmp_path)
        return
    umask = os.umask(0)
    os.umask(umask)
    os.chmod(tmp_path, 0o666 & ~umask)


def _check_path(path: Any) -> None:
    if not isinstance(path, (str, os.PathLike)):
        raise TypeError(f"path must be str or os.PathLike, got {type(path).__name__}")
