# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Utility functions for generating identifiers."""

from __future__ import annotations

import sys


if sys.version_info < (3, 14):
    from uuid_extensions import uuid7 as uuid7_gen
else:
    from uuid import uuid7 as uuid7_gen


def uuid7_hex() -> str:
    """Generate a new time-ordered UUID7 as a hex string."""
    return uuid7_gen().hex


__all__ = ("uuid7_hex",)
