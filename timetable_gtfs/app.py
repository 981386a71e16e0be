# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

from argparse import ArgumentParser, Namespace
from pathlib import Path

from impuls import App, Pipeline, PipelineOptions, Task
from impuls.model import Agency
from impuls.resource import LocalResource, Resource
from impuls.tasks import AddEntity, ExecuteSQL, SaveGTFS

from .config import Config, load_config
from .create_calendars import CreateCalendars
from .gtfs import GTFS_HEADERS, GTFS_HEADERS_WITH_SHAPES
from .load_timetables import STOPS_RESOURCE, LoadTimetables, route_resource
from .publish import PublishArchives, staging_path
from .shapes import GenerateShapes


class TimetableGTFS(App):
    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument("config", type=Path, help="path to the YAML configuration file")
        parser.add_argument(
            "-o",
            "--output-dir",
            type=Path,
            help="directory for the GTFS archives (overrides folder_output)",
        )

    def prepare(self, args: Namespace, options: PipelineOptions) -> Pipeline:
        config = load_config(args.config)
        if args.output_dir is not None:
            config.folder_output = args.output_dir
        config.folder_output.mkdir(parents=True, exist_ok=True)

        return Pipeline(
            tasks=create_tasks(config),
            resources=create_resources(config),
            options=options,
        )


def create_tasks(config: Config) -> list[Task]:
    output = config.folder_output / f"{config.archive_name}.zip"
    output_with_shapes = config.folder_output / f"{config.archive_name}_shapes.zip"

    return [
        AddEntity(
            entity=Agency(
                id=config.agency_id,
                name=config.agency_name,
                url=config.agency_url,
                timezone=config.agency_timezone,
                lang=config.agency_lang,
                phone=config.agency_phone,
            ),
            task_name="AddAgency",
        ),
        CreateCalendars(config.active_services),
        LoadTimetables(config),
        ExecuteSQL(
            statement=(
                "UPDATE trips SET headsign = ("
                "  SELECT stops.name FROM stop_times"
                "  JOIN stops ON stops.stop_id = stop_times.stop_id"
                "  WHERE stop_times.trip_id = trips.trip_id"
                "  ORDER BY stop_times.stop_sequence DESC LIMIT 1"
                ") WHERE EXISTS (SELECT 1 FROM stop_times WHERE stop_times.trip_id = trips.trip_id)"
            ),
            task_name="GenerateTripHeadsign",
        ),
        GenerateShapes(),
        SaveGTFS(headers=GTFS_HEADERS, target=staging_path(output), ensure_order=True),
        SaveGTFS(
            headers=GTFS_HEADERS_WITH_SHAPES,
            target=staging_path(output_with_shapes),
            ensure_order=True,
        ),
        PublishArchives([output, output_with_shapes]),
    ]


def create_resources(config: Config) -> dict[str, Resource]:
    resources: dict[str, Resource] = {
        route_resource(name): LocalResource(path)
        for name, path in config.locate_route_files().items()
    }
    if config.stops is not None:
        resources[STOPS_RESOURCE] = LocalResource(config.stops)
    return resources


def main() -> None:
    TimetableGTFS().run()
