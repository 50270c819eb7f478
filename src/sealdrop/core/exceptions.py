"""
Exceptions for SealDrop
This is placed such that there is a general error catcher
"""


class SealDropError(Exception):
    # general container for errors
    pass


class InvalidInputError(SealDropError):
    # raised on malformed call arguments (wrong field sizes, empty passphrase)
    pass


class AuthenticationError(SealDropError):
    # raised when the AEAD tag does not verify; never says why
    def __init__(self, message: str = "authentication failed"):
        super().__init__(message)


class MalformedBlobError(SealDropError):
    # raised when stored bytes do not follow the blob layout
    pass


class TruncatedBlobError(MalformedBlobError):
    # raised when the blob is shorter than its declared structure
    def __init__(self, field: str, needed: int, remaining: int):
        self.field = field
        self.needed = needed
        self.remaining = remaining
        super().__init__(
            f"truncated blob: {field} needs {needed} bytes, {remaining} remaining"
        )


class EmptyCiphertextError(TruncatedBlobError):
    # raised when nothing follows the metadata fields
    def __init__(self):
        self.field = "ciphertext"
        self.needed = 1
        self.remaining = 0
        MalformedBlobError.__init__(self, "blob carries no ciphertext")


class InvalidMetadataError(MalformedBlobError):
    # raised when filename or media type is not valid UTF-8
    pass


class StorageError(SealDropError):
    # raised if the blob store fails in some way
    pass


class BlobNotFoundError(StorageError):
    # raised if no blob exists under an id
    pass


class InvalidBlobIdError(StorageError):
    # raised when an id is not one the store could have issued
    pass
