"""QLA Practice Backend.

Mastery-adaptive practice sessions for the QLA learning platform: session
selection, answer grading, mastery tracking and progress reporting.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
