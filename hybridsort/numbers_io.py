from __future__ import annotations

import csv
import logging
import os
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike

INTEGER = re.compile(r"[+-]?[0-9]+")


class NumberFormatError(ValueError):
    """A field of an input file is not an integer."""

    def __init__(self, path: PathLike, line: int, text: str):
        self.path = path
        self.line = line
        self.text = text
        super().__init__(f"{path}:{line}: not an integer: {text!r}")


def read_numbers(path: PathLike) -> list[int]:
    """Read every field of every CSV record in `path` as an integer.

    Blank records are skipped and surrounding whitespace is ignored. A field
    must be an optionally signed run of ASCII digits.
    """
    numbers: list[int] = []
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        for record in reader:
            for field in record:
                text = field.strip()
                if not INTEGER.fullmatch(text):
                    raise NumberFormatError(path, reader.line_num, field)
                numbers.append(int(text))
    logger.debug("read %d numbers from %s", len(numbers), path)
    return numbers


def write_numbers(path: PathLike, numbers: Iterable[int]) -> None:
    """Write one integer per CSV record."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerows([x] for x in numbers)
