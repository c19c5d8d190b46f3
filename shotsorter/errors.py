class ShotSorterError(Exception):
    """Base error for the project."""


# --- per-file: parsing ---

class ParseError(ShotSorterError):
    pass

class UnrecognizedFormat(ParseError):
    """Filename does not follow a known screenshot naming convention."""


# --- per-file: placement ---

class PlacementError(ShotSorterError):
    pass

class DuplicateDetected(PlacementError):
    """Destination already holds byte-identical content."""

class NameCollision(PlacementError):
    """Destination exists with different content; a suffixed name was used."""

class MoveError(PlacementError):
    pass

class SourceUnavailable(MoveError):
    """Source vanished or became unreadable before it could be moved."""

class PermissionDenied(MoveError):
    pass

class DiskFull(MoveError):
    pass


# --- startup: fatal for the whole run ---

class StartupError(ShotSorterError):
    pass

class InvalidRootError(StartupError):
    pass

class ConfigError(StartupError):
    pass
