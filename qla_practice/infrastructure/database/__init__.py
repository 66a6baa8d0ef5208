# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

Example:
    from qla_practice.infrastructure.database import Database

    database = Database.from_settings(settings)
    async with database.session() as session:
        result = await session.execute(select(Skill))
"""

from qla_practice.infrastructure.database.connection import Database, DatabaseError

__all__ = [
    "Database",
    "DatabaseError",
]
