"""Read single-value secret files (passwords) written by editors or `echo`."""

from pathlib import Path
from typing import Union

_BOM = "\ufeff"


def read_secret_file(path: Union[str, Path]) -> str:
    """Return the file's text without a leading UTF-8 BOM or one trailing newline."""
    text = Path(path).read_bytes().decode("utf-8")
    if text.startswith(_BOM):
        text = text[1:]
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text
