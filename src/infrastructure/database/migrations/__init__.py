# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Revisions are plain alembic operation modules applied in order by
``runner.run_migrations``; applied state is tracked in ``alembic_version``.
"""
