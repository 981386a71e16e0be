# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from impuls.model import Date, Route
from impuls.tools.types import StrPath
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .errors import ConfigError

logger = logging.getLogger("Config")

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class Service(BaseModel):
    service_id: str
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False
    start_date: date
    end_date: date
    routes: list[str] = []

    @field_validator("service_id", mode="before")
    @classmethod
    def coerce_service_id(cls, v: Any) -> Any:
        # YAML reads bare ids like `1` or `2024` as integers
        return str(v) if isinstance(v, int) else v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_gtfs_date(cls, v: Any) -> Any:
        if isinstance(v, int):
            v = str(v)
        if isinstance(v, str) and len(v) == 8 and v.isdigit():
            return datetime.strptime(v, "%Y%m%d").date()
        return v

    @field_validator("routes", mode="before")
    @classmethod
    def coerce_route_names(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [str(i) for i in v]
        return v

    @model_validator(mode="after")
    def check_date_range(self) -> "Service":
        if self.end_date < self.start_date:
            raise ValueError(
                f"service {self.service_id!r}: end_date {self.end_date} "
                f"is before start_date {self.start_date}"
            )
        return self

    @property
    def weekdays(self) -> tuple[bool, ...]:
        return tuple(getattr(self, day) for day in WEEKDAYS)

    @property
    def gtfs_start_date(self) -> Date:
        return Date(self.start_date.year, self.start_date.month, self.start_date.day)

    @property
    def gtfs_end_date(self) -> Date:
        return Date(self.end_date.year, self.end_date.month, self.end_date.day)


class Config(BaseModel):
    folder_input: Path
    folder_output: Path
    stops: Path | None = None

    agency_id: str
    agency_name: str
    agency_url: str
    agency_timezone: str
    agency_lang: str = ""
    agency_phone: str = ""
    route_type: int = Route.Type.BUS.value

    delimiter: str = ","
    encoding: str = "utf-8-sig"
    absent_markers: list[str] = ["", "-", "|"]
    archive_name: str = "gtfs"

    services: list[Service]

    @field_validator("agency_id", mode="before")
    @classmethod
    def coerce_agency_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("agency_timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {v!r}") from None
        return v

    @field_validator("route_type")
    @classmethod
    def check_route_type(cls, v: int) -> int:
        if v not in {i.value for i in Route.Type}:
            raise ValueError(f"unsupported route_type: {v}")
        return v

    @field_validator("delimiter")
    @classmethod
    def check_delimiter(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError(f"delimiter must be a single character, got {v!r}")
        return v

    @model_validator(mode="after")
    def check_services(self) -> "Config":
        seen = set[str]()
        for service in self.services:
            if service.service_id in seen:
                raise ValueError(f"duplicate service_id: {service.service_id!r}")
            seen.add(service.service_id)
        return self

    @property
    def active_services(self) -> list[Service]:
        return [i for i in self.services if i.routes]

    @property
    def route_names(self) -> list[str]:
        """Returns the names of all referenced route files, in first-encounter order."""
        names = dict[str, None]()
        for service in self.active_services:
            names.update((name, None) for name in service.routes)
        return list(names)

    def route_file(self, route_name: str) -> Path:
        return self.folder_input / f"{route_name}.csv"

    def locate_route_files(self) -> dict[str, Path]:
        files = dict[str, Path]()
        for name in self.route_names:
            path = self.route_file(name)
            if not path.is_file():
                raise ConfigError(f"route file for {name!r} not found: {path}")
            files[name] = path
        return files

    def resolve_paths(self, base: Path) -> None:
        self.folder_input = base / self.folder_input
        self.folder_output = base / self.folder_output
        if self.stops is not None:
            self.stops = base / self.stops


def parse_config(data: Any, base: Path = Path(".")) -> Config:
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping")

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration:\n{e}") from e

    for service in config.services:
        if not service.routes:
            logger.warning("Service %r declares no routes - skipping it", service.service_id)

    if not config.active_services:
        raise ConfigError("no service declares any routes")

    config.resolve_paths(base)
    if config.stops is not None and not config.stops.is_file():
        raise ConfigError(f"stop catalog not found: {config.stops}")

    return config


def load_config(path: StrPath) -> Config:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e
    return parse_config(data, path.parent)
