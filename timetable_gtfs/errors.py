# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

from impuls.errors import DataError


class ConfigError(ValueError):
    pass


class InputFormatError(DataError):
    def __init__(self, source: str, message: str, row: int | None = None, col: int | None = None):
        self.source = source
        self.row = row
        self.col = col

        location = source
        if row is not None:
            location += f", row {row}"
        if col is not None:
            location += f", column {col}"
        super().__init__(f"{location}: {message}")
