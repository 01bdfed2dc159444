# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ContentStore exceptions."""

from __future__ import annotations


class ContentStoreError(Exception):
    """Base exception for ContentStore errors."""

    pass


class NotFoundError(ContentStoreError, KeyError):
    """Raised when a path, type name or identity does not resolve."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ''


class AlreadyExistsError(ContentStoreError):
    """Raised when a path, type or authorizable id is already taken."""

    pass


class TypeMismatchError(ContentStoreError, TypeError):
    """Raised when an item or authorizable is not of the expected kind."""

    pass


class InvalidArgumentError(ContentStoreError, ValueError):
    """Raised on malformed paths or names and on illegal moves."""

    pass


class UnsupportedOperationError(ContentStoreError, NotImplementedError):
    """Raised when an operation is not modelled."""

    pass


class UnsupportedInCurrentModeError(UnsupportedOperationError):
    """Raised when an operation needs the other resolve mode."""

    pass


class SessionClosedError(ContentStoreError):
    """Raised when a logged-out session is used."""

    pass
