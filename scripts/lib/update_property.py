#!/usr/bin/env python3
# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Update or append a key/value pair inside a property file.

Thin executable wrapper for shell callers; see ``adminkit.update_property``.
"""

from __future__ import annotations

import sys

from adminkit.update_property import main

if __name__ == "__main__":  # pragma: no cover - exercised via callers
    sys.exit(main(sys.argv[1:]))
