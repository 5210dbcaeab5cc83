# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

# HTTP transport backends
"""
Transport implementations for the network client.
"""

from .httpx import HTTPXTransport

__all__ = [
    "HTTPXTransport",
]
