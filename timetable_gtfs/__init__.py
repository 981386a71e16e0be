# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

from .errors import ConfigError, InputFormatError

__all__ = ["ConfigError", "InputFormatError"]
