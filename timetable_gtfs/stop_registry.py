# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

import csv
import hashlib
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import IO

from impuls.model import Stop

from .errors import InputFormatError

UNSET_COORDINATE = 0.0

CATALOG_COLUMNS = ("stop_id", "stop_name", "stop_lat", "stop_lon")

STOP_ID_LENGTH = 16


def mint_stop_id(name: str) -> str:
    return hashlib.sha256(name.encode("utf-8")).hexdigest()[:STOP_ID_LENGTH]


def has_coordinates(stop: Stop) -> bool:
    return not (stop.lat == UNSET_COORDINATE and stop.lon == UNSET_COORDINATE)


class StopRegistry:
    """Maps stop names to stop ids.

    Names present in the catalog resolve to the catalog stop. Other names get an id
    derived from a hash of the name, so the same name maps to the same id across runs.
    Such stops have unset coordinates and need to be placed manually.
    """

    def __init__(self, catalog: Iterable[Stop] = ()) -> None:
        self.logger = logging.getLogger("StopRegistry")
        self._by_name = dict[str, Stop]()
        self._by_id = dict[str, Stop]()

        for stop in catalog:
            self._by_id[stop.id] = stop
            if stop.name in self._by_name:
                self.logger.warning(
                    "Catalog stop name %r is used by %s and %s - keeping the first one",
                    stop.name,
                    self._by_name[stop.name].id,
                    stop.id,
                )
            else:
                self._by_name[stop.name] = stop

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def resolve(self, name: str) -> str:
        if stop := self._by_name.get(name):
            return stop.id

        stop_id = mint_stop_id(name)
        if stop_id in self._by_id:
            raise ValueError(
                f"stop id {stop_id} minted for {name!r} is already taken by "
                f"{self._by_id[stop_id].name!r}"
            )

        stop = Stop(id=stop_id, name=name, lat=UNSET_COORDINATE, lon=UNSET_COORDINATE)
        self._by_name[name] = stop
        self._by_id[stop_id] = stop
        return stop_id

    def get(self, stop_id: str) -> Stop:
        return self._by_id[stop_id]

    @property
    def stops(self) -> list[Stop]:
        return list(self._by_id.values())

    def stops_without_coordinates(self) -> list[Stop]:
        return [i for i in self._by_id.values() if not has_coordinates(i)]

    @classmethod
    def from_catalog(cls, f: IO[str], source: str = "stops catalog") -> "StopRegistry":
        return cls(read_catalog(f, source))

    @classmethod
    def from_catalog_file(cls, path: Path, encoding: str = "utf-8-sig") -> "StopRegistry":
        with path.open("r", encoding=encoding, newline="") as f:
            return cls.from_catalog(f, path.name)


def read_catalog(f: IO[str], source: str = "stops catalog") -> list[Stop]:
    reader = csv.DictReader(f)
    missing = [i for i in CATALOG_COLUMNS if i not in (reader.fieldnames or [])]
    if missing:
        raise InputFormatError(source, f"missing columns: {', '.join(missing)}")

    stops = list[Stop]()
    seen_ids = set[str]()
    for row_no, row in enumerate(reader, start=2):
        stop_id = (row["stop_id"] or "").strip()
        name = (row["stop_name"] or "").strip()
        if not stop_id or not name:
            raise InputFormatError(source, "stop_id and stop_name are required", row=row_no)
        if stop_id in seen_ids:
            raise InputFormatError(source, f"duplicate stop_id {stop_id!r}", row=row_no)
        seen_ids.add(stop_id)

        stops.append(
            Stop(
                id=stop_id,
                name=name,
                lat=parse_coordinate(row["stop_lat"], source, row_no),
                lon=parse_coordinate(row["stop_lon"], source, row_no),
            )
        )
    return stops


def parse_coordinate(x: str | None, source: str, row_no: int) -> float:
    x = (x or "").strip()
    if not x:
        return UNSET_COORDINATE
    try:
        return float(x)
    except ValueError:
        raise InputFormatError(source, f"invalid coordinate {x!r}", row=row_no) from None
