# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

import logging
from dataclasses import dataclass

from impuls.model import Route, Stop, StopTime, Trip

from .errors import ConfigError
from .stop_registry import StopRegistry
from .stop_times import assemble_stop_times
from .timetable import Timetable

TRIP_ORDINAL_WIDTH = 3


def make_trip_id(service_id: str, route_name: str, ordinal: int) -> str:
    return f"{service_id}_{route_name}_{ordinal:0{TRIP_ORDINAL_WIDTH}}"


@dataclass(frozen=True)
class Feed:
    stops: tuple[Stop, ...]
    routes: tuple[Route, ...]
    trips: tuple[Trip, ...]
    stop_times: tuple[StopTime, ...]
    degenerate_trips: tuple[str, ...]
    stops_without_coordinates: tuple[Stop, ...]


class FeedBuilder:
    """Accumulates routes, trips and stop_times over services -> routes -> trips.

    ``build`` returns the finished tables; the builder must not be used afterwards.
    """

    def __init__(
        self,
        agency_id: str,
        route_type: Route.Type,
        registry: StopRegistry | None = None,
    ) -> None:
        self.logger = logging.getLogger("FeedBuilder")
        self.agency_id = agency_id
        self.route_type = route_type
        self.registry = registry if registry is not None else StopRegistry()

        self.routes = dict[str, Route]()  # by route name
        self.trips = list[Trip]()
        self.stop_times = list[StopTime]()
        self.degenerate_trips = list[str]()
        self.trip_ids = set[str]()
        self.finished = False

    def get_route(self, route_name: str) -> Route:
        if route := self.routes.get(route_name):
            return route

        route = Route(
            id=str(len(self.routes) + 1),
            agency_id=self.agency_id,
            short_name="",
            long_name=route_name,
            type=self.route_type,
        )
        self.routes[route_name] = route
        return route

    def add_service_route(self, service_id: str, timetable: Timetable) -> None:
        if self.finished:
            raise RuntimeError("FeedBuilder was already built")

        route = self.get_route(timetable.route_name)
        if timetable.trip_count == 0:
            self.logger.warning("Route %r has no trips", timetable.route_name)
            return

        for ordinal, times in enumerate(timetable.trips, start=1):
            trip_id = make_trip_id(service_id, timetable.route_name, ordinal)
            if trip_id in self.trip_ids:
                raise ConfigError(f"duplicate trip_id {trip_id!r}")
            self.trip_ids.add(trip_id)

            self.trips.append(Trip(id=trip_id, route_id=route.id, calendar_id=service_id))

            stop_times = assemble_stop_times(
                trip_id,
                timetable.stop_names,
                times,
                self.registry,
            )
            if not stop_times:
                self.logger.warning("Trip %s has no stop times - check the timetable", trip_id)
                self.degenerate_trips.append(trip_id)
            self.stop_times.extend(stop_times)

        self.logger.info(
            "Route %r (service %s): %d trips",
            timetable.route_name,
            service_id,
            timetable.trip_count,
        )

    def build(self) -> Feed:
        self.finished = True
        return Feed(
            stops=tuple(self.registry.stops),
            routes=tuple(self.routes.values()),
            trips=tuple(self.trips),
            stop_times=tuple(self.stop_times),
            degenerate_trips=tuple(self.degenerate_trips),
            stops_without_coordinates=tuple(self.registry.stops_without_coordinates()),
        )
