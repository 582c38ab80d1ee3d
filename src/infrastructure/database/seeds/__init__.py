# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package.

- Categories: the top-level curriculum areas content bundles attach to
"""

from src.infrastructure.database.seeds.categories import (
    DEFAULT_CATEGORIES,
    seed_categories,
)

__all__ = ["DEFAULT_CATEGORIES", "seed_categories"]
