# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content database migrations.

Contains migrations for the curriculum tables:
- categories, topics, lessons
- code_examples, quiz_questions
"""
