# Copyright (c) 2025 Mikołaj Kuranowski
# SPDX-License-Identifier: MIT

from .app import main

main()
