import logging
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from timetable_gtfs.config import load_config, parse_config
from timetable_gtfs.create_calendars import CreateCalendars
from timetable_gtfs.errors import ConfigError


def make_config(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "folder_input": "timetables",
        "folder_output": "out",
        "agency_id": "1",
        "agency_name": "Valley Buses",
        "agency_url": "https://example.com/",
        "agency_timezone": "Europe/Warsaw",
        "services": [
            {
                "service_id": "WD",
                "monday": True,
                "tuesday": True,
                "wednesday": True,
                "thursday": True,
                "friday": True,
                "start_date": "2025-01-01",
                "end_date": 20251231,
                "routes": ["line1", "line2"],
            },
            {
                "service_id": "SA",
                "saturday": True,
                "start_date": "20250101",
                "end_date": "20251231",
                "routes": ["line2", "line3"],
            },
        ],
    }
    data.update(overrides)
    return data


class TestParseConfig:
    def test_parses_services(self) -> None:
        config = parse_config(make_config(), Path("/base"))

        wd = config.services[0]
        assert wd.weekdays == (True, True, True, True, True, False, False)
        assert wd.start_date == date(2025, 1, 1)
        assert wd.end_date == date(2025, 12, 31)
        assert config.folder_input == Path("/base/timetables")
        assert config.route_type == 3

    def test_route_names_in_first_encounter_order(self) -> None:
        config = parse_config(make_config())
        assert config.route_names == ["line1", "line2", "line3"]

    def test_service_without_routes_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        data = make_config()
        data["services"].append(
            {"service_id": "SU", "start_date": "2025-01-01", "end_date": "2025-12-31"}
        )

        with caplog.at_level(logging.WARNING):
            config = parse_config(data)

        assert [i.service_id for i in config.active_services] == ["WD", "SA"]
        assert "SU" in caplog.text

    def test_no_active_services(self) -> None:
        data = make_config(
            services=[{"service_id": "X", "start_date": "2025-01-01", "end_date": "2025-01-02"}]
        )
        with pytest.raises(ConfigError, match="no service"):
            parse_config(data)

    def test_duplicate_service_id(self) -> None:
        data = make_config()
        data["services"][1]["service_id"] = "WD"
        with pytest.raises(ConfigError, match="duplicate service_id"):
            parse_config(data)

    def test_end_before_start(self) -> None:
        data = make_config()
        data["services"][0]["end_date"] = "2024-12-31"
        with pytest.raises(ConfigError, match="before start_date"):
            parse_config(data)

    def test_invalid_timezone(self) -> None:
        with pytest.raises(ConfigError, match="unknown timezone"):
            parse_config(make_config(agency_timezone="Mars/Olympus_Mons"))

    def test_invalid_route_type(self) -> None:
        with pytest.raises(ConfigError, match="route_type"):
            parse_config(make_config(route_type=42))

    def test_missing_field(self) -> None:
        data = make_config()
        del data["agency_name"]
        with pytest.raises(ConfigError, match="agency_name"):
            parse_config(data)

    def test_missing_stop_catalog(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="stop catalog"):
            parse_config(make_config(stops="stops.csv"), tmp_path)


class TestLocateRouteFiles:
    def test_finds_files(self, tmp_path: Path) -> None:
        (tmp_path / "timetables").mkdir()
        for name in ("line1", "line2", "line3"):
            (tmp_path / "timetables" / f"{name}.csv").write_text("A,08:00:00\n")

        config = parse_config(make_config(), tmp_path)
        files = config.locate_route_files()

        assert list(files) == ["line1", "line2", "line3"]
        assert files["line1"] == tmp_path / "timetables" / "line1.csv"

    def test_missing_route_file(self, tmp_path: Path) -> None:
        (tmp_path / "timetables").mkdir()
        (tmp_path / "timetables" / "line1.csv").write_text("A,08:00:00\n")

        config = parse_config(make_config(), tmp_path)
        with pytest.raises(ConfigError, match="line2"):
            config.locate_route_files()


class TestLoadConfig:
    def test_loads_yaml_relative_to_file(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text(
            "folder_input: timetables\n"
            "folder_output: out\n"
            "agency_id: 1\n"
            "agency_name: Valley Buses\n"
            "agency_url: https://example.com/\n"
            "agency_timezone: Europe/Warsaw\n"
            "services:\n"
            "  - service_id: 1\n"
            "    monday: true\n"
            "    start_date: 2025-01-01\n"
            "    end_date: 2025-06-30\n"
            "    routes: [line1]\n",
            encoding="utf-8",
        )

        config = load_config(tmp_path / "config.yaml")

        assert config.agency_id == "1"
        assert config.services[0].service_id == "1"
        assert config.folder_input == tmp_path / "timetables"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("services: [\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(tmp_path / "config.yaml")

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path / "config.yaml")


class TestCreateCalendars:
    def test_to_calendar(self) -> None:
        config = parse_config(make_config())
        calendar = CreateCalendars.to_calendar(config.services[1])

        assert calendar.id == "SA"
        assert calendar.saturday
        assert not calendar.monday
        assert calendar.start_date == date(2025, 1, 1)
        assert calendar.end_date == date(2025, 12, 31)
