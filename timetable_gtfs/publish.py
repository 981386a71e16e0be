# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

import os
from collections.abc import Sequence
from pathlib import Path

from impuls import Task, TaskRuntime


def staging_path(target: Path) -> Path:
    return target.with_name(f".{target.name}.partial")


class PublishArchives(Task):
    """Moves archives saved under their staging names to their final names.

    All archives are written before any is moved, so a failed save never leaves
    a half-published feed in the output directory.
    """

    def __init__(self, targets: Sequence[Path]) -> None:
        super().__init__()
        self.targets = targets

    def execute(self, r: TaskRuntime) -> None:
        for target in self.targets:
            staged = staging_path(target)
            if not staged.is_file():
                raise FileNotFoundError(f"staged archive missing: {staged}")

        for target in self.targets:
            os.replace(staging_path(target), target)
            self.logger.info("Published %s", target)
