# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

from impuls import DBConnection, Task, TaskRuntime
from impuls.model import Route, Stop, StopTime, Trip

from .config import Config
from .feed import Feed, FeedBuilder
from .stop_registry import StopRegistry
from .timetable import Timetable, load_timetable

STOPS_RESOURCE = "stops.csv"


def route_resource(route_name: str) -> str:
    return f"route-{route_name}.csv"


class LoadTimetables(Task):
    def __init__(self, config: Config) -> None:
        super().__init__()
        self.config = config

    def execute(self, r: TaskRuntime) -> None:
        registry = self.load_registry(r)
        builder = FeedBuilder(
            agency_id=self.config.agency_id,
            route_type=Route.Type(self.config.route_type),
            registry=registry,
        )

        timetables = dict[str, Timetable]()
        for service in self.config.active_services:
            for route_name in service.routes:
                if route_name not in timetables:
                    self.logger.info("Loading timetable %r", route_name)
                    timetables[route_name] = load_timetable(
                        r.resources[route_resource(route_name)].stored_at,
                        route_name,
                        delimiter=self.config.delimiter,
                        encoding=self.config.encoding,
                        absent_markers=self.config.absent_markers,
                    )
                builder.add_service_route(service.service_id, timetables[route_name])

        feed = builder.build()
        self.report(feed)
        with r.db.transaction():
            self.save_feed(r.db, feed)

    def load_registry(self, r: TaskRuntime) -> StopRegistry:
        if self.config.stops is None:
            return StopRegistry()
        registry = StopRegistry.from_catalog_file(
            r.resources[STOPS_RESOURCE].stored_at,
            encoding=self.config.encoding,
        )
        self.logger.info("Loaded %d stops from the catalog", len(registry))
        return registry

    def report(self, feed: Feed) -> None:
        self.logger.info(
            "Built %d stops, %d routes, %d trips and %d stop times",
            len(feed.stops),
            len(feed.routes),
            len(feed.trips),
            len(feed.stop_times),
        )
        for stop in feed.stops_without_coordinates:
            self.logger.warning(
                "Stop %r (%s) has no coordinates - set them manually",
                stop.name,
                stop.id,
            )

    @staticmethod
    def save_feed(db: DBConnection, feed: Feed) -> None:
        db.create_many(Stop, feed.stops)
        db.create_many(Route, feed.routes)
        db.create_many(Trip, feed.trips)
        db.create_many(StopTime, feed.stop_times)
