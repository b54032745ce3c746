class HpiError(Exception):
    """Base class for hpiarc-specific errors."""


# Stream/bounds
class TruncatedArchiveError(HpiError, EOFError):
    pass


class BufferTooSmallError(HpiError, ValueError):
    pass


class ArchiveNotOpenError(HpiError, RuntimeError):
    pass


# Directory walk
class CatalogError(HpiError):
    pass


class DirectoryCycleError(CatalogError):
    pass


class DuplicatePathError(CatalogError):
    pass


class UnsafePathError(CatalogError):
    pass


class CatalogLimitError(CatalogError):
    pass


# Data retrieval
class NotAFileError(HpiError):
    pass


class UnsupportedCompressionError(HpiError):
    pass
