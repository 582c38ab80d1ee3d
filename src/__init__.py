"""Curriculum content loader.

Reconciles curriculum content bundles (topics, lessons, code examples and
quiz questions) into a relational store, idempotently and atomically.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
