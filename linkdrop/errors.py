"""Error taxonomy shared by the storage core and the HTTP layer."""


class LinkdropError(Exception):
    pass


class InvalidIdentifier(LinkdropError):
    """Malformed identifier, either at validation or when decoding its name."""


class FilenameTooLong(InvalidIdentifier):
    """The encoded filename would not fit in a single path segment."""


class StoredFileNotFound(LinkdropError):
    pass


class UploadTooLarge(LinkdropError):
    pass


class EnvironmentFailure(LinkdropError):
    """The upload directory cannot be created or written."""
