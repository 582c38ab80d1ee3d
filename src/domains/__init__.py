# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

Domains:
    content_loader: Validation and idempotent reconciliation of
        curriculum content bundles into the content database.
"""
