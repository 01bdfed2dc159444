# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Store package - The path-keyed item map.

The package is organized into:
- core: ItemStore with move, reorder, cascading delete and child listing

Example:
    >>> from genro_contentstore.store import ItemStore
    >>> store = ItemStore()
    >>> store.exists('/')
    True
"""

from .core import ItemStore

__all__ = ["ItemStore"]
