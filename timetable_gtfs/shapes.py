# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

import hashlib
import logging
import math
from collections.abc import Iterable, Sequence
from itertools import groupby
from operator import itemgetter
from typing import cast

import impuls
from impuls.model import ShapePoint

from .stop_registry import UNSET_COORDINATE

Point = tuple[float, float]

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: Point, b: Point) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    h = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def shape_points(shape_id: str, points: Sequence[Point]) -> list[ShapePoint]:
    result = list[ShapePoint]()
    dist = 0.0
    for idx, point in enumerate(points):
        if idx > 0:
            dist += haversine_m(points[idx - 1], point)
        result.append(
            ShapePoint(
                shape_id=shape_id,
                sequence=idx,
                lat=point[0],
                lon=point[1],
                shape_dist_traveled=round(dist, 2),
            )
        )
    return result


class ShapeSynthesizer:
    """Builds straight-line shapes through the stops of trips.

    Trips with the same sequence of stop coordinates share a shape. Trips passing
    through a stop without coordinates, or with fewer than 2 stops, get no shape
    and are recorded in ``flagged``.
    """

    def __init__(self) -> None:
        self.shape_hash_to_id = dict[str, str]()
        self.shapes = dict[str, list[Point]]()
        self.flagged = dict[str, str]()  # trip_id -> reason

    def add_trip(self, trip_id: str, points: Sequence[Point]) -> str | None:
        if len(points) < 2:
            self.flagged[trip_id] = f"only {len(points)} stop(s)"
            return None

        unset = [
            idx
            for idx, (lat, lon) in enumerate(points, start=1)
            if lat == UNSET_COORDINATE and lon == UNSET_COORDINATE
        ]
        if unset:
            positions = ", ".join(map(str, unset))
            self.flagged[trip_id] = f"stop(s) without coordinates at sequence {positions}"
            return None

        shape_hash = _hash_stop_points(points)
        if shape_id := self.shape_hash_to_id.get(shape_hash):
            return shape_id

        shape_id = str(len(self.shapes) + 1)
        self.shape_hash_to_id[shape_hash] = shape_id
        self.shapes[shape_id] = list(points)
        return shape_id


class GenerateShapes(impuls.Task):
    def execute(self, r: impuls.TaskRuntime) -> None:
        synthesizer = ShapeSynthesizer()
        assignments = list[tuple[str, str]]()  # shape_id, trip_id

        rows = cast(
            Iterable[tuple[str, float, float]],
            r.db.raw_execute(
                """
                SELECT stop_times.trip_id, stops.lat, stops.lon
                FROM stop_times JOIN stops ON stops.stop_id = stop_times.stop_id
                ORDER BY stop_times.trip_id, stop_times.stop_sequence
                """
            ),
        )
        for trip_id, trip_rows in groupby(rows, itemgetter(0)):
            points = [(lat, lon) for _, lat, lon in trip_rows]
            if shape_id := synthesizer.add_trip(trip_id, points):
                assignments.append((shape_id, trip_id))

        for trip_id, reason in synthesizer.flagged.items():
            self.logger.warning("No shape for trip %s: %s", trip_id, reason)

        with r.db.transaction():
            r.db.raw_execute_many(
                "INSERT INTO shapes (shape_id) VALUES (?)",
                ((shape_id,) for shape_id in synthesizer.shapes),
            )
            for shape_id, points in synthesizer.shapes.items():
                r.db.create_many(ShapePoint, shape_points(shape_id, points))
            r.db.raw_execute_many(
                "UPDATE trips SET shape_id = ? WHERE trip_id = ?",
                assignments,
            )

        self.logger.info(
            "Created %d shapes for %d trips",
            len(synthesizer.shapes),
            len(assignments),
        )


def _hash_stop_points(points: Iterable[Point]) -> str:
    shape = ";".join(f"{lat!r},{lon!r}" for lat, lon in points)
    m = hashlib.sha256()
    m.update(shape.encode())
    return m.hexdigest()
