class MapMakerError(Exception):
    """Base class for map editor errors."""


class InvalidStateError(MapMakerError, RuntimeError):
    """Operation called outside the lifecycle state it is valid in."""


class UnsupportedToolError(MapMakerError, NotImplementedError):
    """Dispatch reached a tool/phase combination without behaviour."""


class MapFormatError(MapMakerError, ValueError):
    """Malformed serialized map data."""
