from __future__ import annotations

import csv
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence

from .errors import InputFormatError

_INT_RE = re.compile(r"^[0-9]+$")

FORMAT_HINT = (
    "Not a valid CSV file. CSV must be headless and contain the following values in this format: "
    "nodeid,aclid,txnid,acltxid"
)


@dataclass(frozen=True)
class SourceRecord:
    node_id: int
    acl_id: int
    transaction_id: int
    change_set_id: int


def parse_record(fields: Sequence[str], line_number: int) -> SourceRecord:
    values = [field.strip() for field in fields]
    if len(values) != 4 or not all(_INT_RE.match(value) for value in values):
        raise InputFormatError(f"{FORMAT_HINT} (line {line_number}: {','.join(fields)})", line_number=line_number)
    return SourceRecord(*(int(value) for value in values))


def iter_records(lines: Iterable[str]) -> Iterator[SourceRecord]:
    for line_number, fields in enumerate(csv.reader(lines), start=1):
        if not fields or not any(field.strip() for field in fields):
            continue
        yield parse_record(fields, line_number)


def read_dataset(path: str) -> List[SourceRecord]:
    """Read a headless ``node,acl,transaction,changeset`` CSV."""

    try:
        with open(path, "r", encoding="utf-8", newline="") as handle:
            return list(iter_records(handle))
    except FileNotFoundError as exc:
        raise InputFormatError(f"Dataset file not found: {path}") from exc


__all__ = ["FORMAT_HINT", "SourceRecord", "iter_records", "parse_record", "read_dataset"]
