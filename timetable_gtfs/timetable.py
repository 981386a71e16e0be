# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

import csv
import re
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from impuls.model import TimePoint

from .errors import InputFormatError

MINUTE = 60
HOUR = 60 * MINUTE

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")

DEFAULT_ABSENT_MARKERS = frozenset({"", "-", "|"})


@dataclass(frozen=True)
class Timetable:
    """A route's wide timetable: stops in physical order and one time column per trip.

    Each entry of ``trips`` is aligned with ``stop_names`` - ``trips[t][i]`` is the time
    trip ``t`` serves stop ``stop_names[i]``, or None if the stop is not served.
    """

    route_name: str
    stop_names: tuple[str, ...]
    trips: tuple[tuple[TimePoint | None, ...], ...]

    @property
    def trip_count(self) -> int:
        return len(self.trips)


def parse_time(x: str) -> TimePoint | None:
    m = TIME_PATTERN.match(x)
    if not m:
        return None
    h, mi, s = map(int, m.groups())
    if mi >= 60 or s >= 60:
        return None
    return TimePoint(seconds=h * HOUR + mi * MINUTE + s)


def is_absent(cell: str, absent_markers: Collection[str]) -> bool:
    return not cell or cell in absent_markers


def parse_timetable(
    rows: Iterable[list[str]],
    route_name: str,
    absent_markers: Collection[str] = DEFAULT_ABSENT_MARKERS,
    source: str | None = None,
) -> Timetable:
    source = source or route_name
    table = [
        (row_no, [cell.strip() for cell in row])
        for row_no, row in enumerate(rows, start=1)
        if any(cell.strip() for cell in row)
    ]
    if not table:
        raise InputFormatError(source, "no stop rows")

    width = max(len(cells) for _, cells in table)
    if width < 2:
        raise InputFormatError(source, "no trip columns")

    # Spreadsheet exports often pad every row with empty trailing cells
    while width > 1 and all(len(cells) < width or not cells[width - 1] for _, cells in table):
        width -= 1

    stop_names = list[str]()
    columns = [list[TimePoint | None]() for _ in range(width - 1)]

    for row_no, cells in table:
        name = cells[0] if cells else ""
        if not name:
            raise InputFormatError(source, "missing stop name", row=row_no, col=1)
        stop_names.append(name)

        for col_idx, column in enumerate(columns, start=1):
            cell = cells[col_idx] if col_idx < len(cells) else ""
            if is_absent(cell, absent_markers):
                column.append(None)
                continue

            time = parse_time(cell)
            if time is None:
                raise InputFormatError(
                    source,
                    f"invalid time {cell!r} (expected HH:MM:SS)",
                    row=row_no,
                    col=col_idx + 1,
                )
            column.append(time)

    return Timetable(
        route_name=route_name,
        stop_names=tuple(stop_names),
        trips=tuple(tuple(i) for i in columns),
    )


def read_timetable(
    f: IO[str],
    route_name: str,
    delimiter: str = ",",
    absent_markers: Collection[str] = DEFAULT_ABSENT_MARKERS,
    source: str | None = None,
) -> Timetable:
    rows = csv.reader(f, delimiter=delimiter)
    return parse_timetable(rows, route_name, absent_markers, source)


def load_timetable(
    path: Path,
    route_name: str,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
    absent_markers: Collection[str] = DEFAULT_ABSENT_MARKERS,
) -> Timetable:
    with path.open("r", encoding=encoding, newline="") as f:
        return read_timetable(f, route_name, delimiter, absent_markers, f"{route_name}.csv")
