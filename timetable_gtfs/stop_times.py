# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

import logging
from collections.abc import Sequence
from operator import itemgetter

from impuls.model import StopTime, TimePoint

from .stop_registry import StopRegistry

logger = logging.getLogger("StopTimeAssembler")


def assemble_stop_times(
    trip_id: str,
    stop_names: Sequence[str],
    times: Sequence[TimePoint | None],
    registry: StopRegistry,
) -> list[StopTime]:
    events = list[tuple[TimePoint, str]]()
    for name, time in zip(stop_names, times):
        if time is None:
            logger.debug("%s: %r is not served", trip_id, name)
            continue
        events.append((time, registry.resolve(name)))

    # Physical row order is topology, not direction - sequence by time.
    # sort is stable, so ties keep the row order.
    events.sort(key=itemgetter(0))

    return [
        StopTime(
            trip_id=trip_id,
            stop_id=stop_id,
            stop_sequence=sequence,
            arrival_time=time,
            departure_time=time,
        )
        for sequence, (time, stop_id) in enumerate(events, start=1)
    ]
