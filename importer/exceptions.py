class MediaImportError(Exception):
    """
    Base class for every error raised by the media importer.

    Callers should include a concise human-readable reason in the exception
    message; it ends up in the task status and in the import status record.
    """


class InvalidItemError(MediaImportError):
    """An export entry is missing its source path, timestamp or caption."""


class AlreadyImportedError(MediaImportError):
    """An asset carrying the item's fingerprint already exists."""


class SourceFileMissingError(MediaImportError):
    """The media file referenced by an export entry is not on disk."""


class StorageError(MediaImportError):
    """The content store rejected an asset or its metadata."""


class MalformedSourceError(MediaImportError):
    """A post file could not be decoded or does not hold a list of posts."""


class NoSourceFilesError(MediaImportError):
    """The export directory contains no post files."""
