from pathlib import Path

from impuls.tasks import SaveGTFS

from timetable_gtfs.app import create_resources, create_tasks
from timetable_gtfs.config import parse_config
from timetable_gtfs.load_timetables import STOPS_RESOURCE, route_resource
from timetable_gtfs.publish import PublishArchives
from timetable_gtfs.shapes import GenerateShapes

CONFIG = {
    "folder_input": "timetables",
    "folder_output": "out",
    "stops": "stops.csv",
    "agency_id": "1",
    "agency_name": "Valley Buses",
    "agency_url": "https://example.com/",
    "agency_timezone": "Europe/Warsaw",
    "services": [
        {
            "service_id": "WD",
            "monday": True,
            "start_date": "2025-01-01",
            "end_date": "2025-12-31",
            "routes": ["Town - Lake"],
        },
    ],
}


def write_inputs(base: Path) -> None:
    (base / "timetables").mkdir()
    (base / "timetables" / "Town - Lake.csv").write_text("A,08:00:00\nB,08:10:00\n")
    (base / "stops.csv").write_text("stop_id,stop_name,stop_lat,stop_lon\n1,A,50.0,19.0\n")


class TestCreatePipeline:
    def test_resources(self, tmp_path: Path) -> None:
        write_inputs(tmp_path)
        config = parse_config(CONFIG, tmp_path)

        resources = create_resources(config)

        assert set(resources) == {route_resource("Town - Lake"), STOPS_RESOURCE}

    def test_archives_are_saved_after_shapes_and_then_published(self, tmp_path: Path) -> None:
        write_inputs(tmp_path)
        config = parse_config(CONFIG, tmp_path)

        tasks = create_tasks(config)
        kinds = [type(i) for i in tasks]

        assert kinds[-4:] == [GenerateShapes, SaveGTFS, SaveGTFS, PublishArchives]
