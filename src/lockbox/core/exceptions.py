"""
Exceptions for LockBox
Everything raised by the library derives from LockBoxError so the gateway
and the CLI have a single thing to catch.
"""


class LockBoxError(Exception):
    # general container for errors
    pass


class AuthenticationError(LockBoxError):
    # raised when an envelope fails verification (wrong password, tampered or truncated)
    pass


class ResourceExhaustionError(LockBoxError):
    # raised when key derivation cannot get its working memory
    pass


class InvalidInputError(LockBoxError):
    # raised for unsafe artifact names or missing required fields
    pass


class StorageError(LockBoxError):
    # raised when the backing directory fails in some way
    pass


class ArtifactNotFoundError(StorageError):
    # raised if an artifact is not in the store
    pass
