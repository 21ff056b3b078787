"""Crownix Vault exceptions.

Every error raised by the engine derives from :class:`VaultError` so callers
can catch the whole family at once; the subclasses tell the UI which message
to show.
"""


class VaultError(Exception):
    """Base class for all vault errors."""


class AuthenticationError(VaultError):
    """AEAD tag did not verify.

    Raised for a wrong master password and for tampered ciphertext alike;
    the two cases are deliberately indistinguishable.
    """


class MalformedContainerError(VaultError, ValueError):
    """The bytes are not a recognized vault container."""


class SessionLockedError(VaultError):
    """Operation requires an unlocked session."""


class StaleSessionError(SessionLockedError):
    """The session key was superseded by a master password change."""


class VaultStateError(VaultError, RuntimeError):
    """Invalid state transition (double unlock, double load, ...)."""


class NotFoundError(VaultError, LookupError):
    """No entity with the given id."""


class DuplicateIdError(VaultError):
    """An entity with the given id already exists."""


class InvalidEntityError(VaultError, ValueError):
    """An entity being created or edited breaks its entry form rules."""


class VaultStorageError(VaultError, OSError):
    """Reading or writing a vault file failed."""


class DanglingCategoryReferenceWarning(UserWarning):
    """An item points at a category that no longer exists."""
