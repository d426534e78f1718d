"""Error types for haystack."""


class HaystackError(Exception):
    """Base class for haystack errors."""


class ConfigurationError(HaystackError):
    """Invalid configuration detected before any document is processed."""


class ThemeNotFoundError(ConfigurationError):
    """Requested highlighting theme is not in the built-in catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown theme: {name!r} (run 'haystack themes' to list available themes)")
        self.name = name


class InvalidRequestPathError(HaystackError):
    """Requested URL path is malformed or escapes the source root."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid request path: {path!r}")
        self.path = path
