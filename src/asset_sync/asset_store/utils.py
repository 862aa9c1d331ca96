import re
from pathlib import PurePosixPath
from typing import Mapping
from urllib.parse import unquote

_FILENAME_RE = re.compile(
    r"filename\*?=(?:UTF-8''|utf-8'')?\"?([^\";]+)\"?",
    re.IGNORECASE,
)


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    name = name.lower()
    return next((v for k, v in headers.items() if k.lower() == name), None)


def filename_from_content_disposition(value: str | None) -> str | None:
    """
    Extracts the filename from a Content-Disposition header, e.g.
    ``attachment; filename=report%20final.pdf`` -> ``report final.pdf``.
    """
    if not value or not value.strip():
        return None
    match = _FILENAME_RE.search(value)
    if not match:
        return None

    raw = unquote(match.group(1).strip())
    # only the basename, never a path
    name = PurePosixPath(raw.replace("\\", "/")).name
    return name or None
