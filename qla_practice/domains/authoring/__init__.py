# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Instructor authoring of skills, banks and questions."""

from qla_practice.domains.authoring.service import (
    AuthoringService,
    AuthoringServiceError,
    BankNotFoundError,
    InvalidPrerequisiteError,
    NoFieldsToUpdateError,
    SkillMismatchError,
    SkillNotFoundError,
)

__all__ = [
    "AuthoringService",
    "AuthoringServiceError",
    "BankNotFoundError",
    "InvalidPrerequisiteError",
    "NoFieldsToUpdateError",
    "SkillMismatchError",
    "SkillNotFoundError",
]
