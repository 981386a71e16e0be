# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

from collections.abc import Sequence

from impuls import Task, TaskRuntime
from impuls.model import Calendar

from .config import Service


class CreateCalendars(Task):
    def __init__(self, services: Sequence[Service]) -> None:
        super().__init__()
        self.services = services

    def execute(self, r: TaskRuntime) -> None:
        with r.db.transaction():
            r.db.create_many(Calendar, (self.to_calendar(i) for i in self.services))
        self.logger.info("Created %d calendars", len(self.services))

    @staticmethod
    def to_calendar(service: Service) -> Calendar:
        monday, tuesday, wednesday, thursday, friday, saturday, sunday = service.weekdays
        return Calendar(
            id=service.service_id,
            monday=monday,
            tuesday=tuesday,
            wednesday=wednesday,
            thursday=thursday,
            friday=friday,
            saturday=saturday,
            sunday=sunday,
            start_date=service.gtfs_start_date,
            end_date=service.gtfs_end_date,
        )
