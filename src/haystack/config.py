"""Configuration management for haystack.

Supports an optional TOML configuration file with auto-discovery. Command
line options override file values.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from haystack.core.page import DEFAULT_HEAD_INCLUDE

CONFIG_FILENAME = "haystack.toml"


@dataclass
class PathsConfig:
    """Source, output and head include locations."""

    source_dir: Path = field(default_factory=lambda: Path("src"))
    output_dir: Path = field(default_factory=lambda: Path("output"))
    head_include: Path = field(default_factory=lambda: DEFAULT_HEAD_INCLUDE)


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 4000


@dataclass
class ThemeConfig:
    """Requested highlighting theme names (resolved at startup)."""

    light: str | None = None
    dark: str | None = None


@dataclass
class Config:
    """Application configuration."""

    paths: PathsConfig
    server: ServerConfig
    theme: ThemeConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for haystack.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls.default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def default(cls) -> "Config":
        """Create config with all defaults, relative to the working directory."""
        return cls(paths=PathsConfig(), server=ServerConfig(), theme=ThemeConfig())

    @classmethod
    def _discover_config(cls) -> Path | None:
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        return cls(
            paths=cls._parse_paths(data.get("paths"), config_dir),
            server=cls._parse_server(data.get("server")),
            theme=cls._parse_theme(data.get("theme")),
            config_path=path,
        )

    @classmethod
    def _parse_paths(cls, data: object, config_dir: Path) -> PathsConfig:
        """Parse paths section; relative paths are taken from the config file's directory."""
        if data is None:
            return PathsConfig(
                source_dir=config_dir / "src",
                output_dir=config_dir / "output",
                head_include=config_dir / DEFAULT_HEAD_INCLUDE,
            )

        if not isinstance(data, dict):
            raise ValueError("paths section must be a dictionary")

        values: dict[str, Path] = {}
        defaults = {
            "source_dir": "src",
            "output_dir": "output",
            "head_include": str(DEFAULT_HEAD_INCLUDE),
        }
        for key, default in defaults.items():
            value = data.get(key, default)
            if not isinstance(value, str):
                raise ValueError(f"paths.{key} must be a string")
            values[key] = config_dir / value

        return PathsConfig(**values)

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "0.0.0.0")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 4000)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")
        validate_port(port)

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_theme(cls, data: object) -> ThemeConfig:
        if data is None:
            return ThemeConfig()

        if not isinstance(data, dict):
            raise ValueError("theme section must be a dictionary")

        light = data.get("light")
        if light is not None and not isinstance(light, str):
            raise ValueError("theme.light must be a string")

        dark = data.get("dark")
        if dark is not None and not isinstance(dark, str):
            raise ValueError("theme.dark must be a string")

        return ThemeConfig(light=light, dark=dark)

    def with_overrides(
        self,
        *,
        source_dir: Path | None = None,
        output_dir: Path | None = None,
        host: str | None = None,
        port: int | None = None,
        theme_light: str | None = None,
        theme_dark: str | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config; the original
        Config is not modified.

        Raises:
            ValueError: If the port is out of range
        """
        paths = self.paths
        if source_dir is not None or output_dir is not None:
            paths = replace(
                self.paths,
                source_dir=source_dir if source_dir is not None else self.paths.source_dir,
                output_dir=output_dir if output_dir is not None else self.paths.output_dir,
            )

        server = self.server
        if host is not None or port is not None:
            if port is not None:
                validate_port(port)
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        theme = self.theme
        if theme_light is not None or theme_dark is not None:
            theme = replace(
                self.theme,
                light=theme_light if theme_light is not None else self.theme.light,
                dark=theme_dark if theme_dark is not None else self.theme.dark,
            )

        return replace(self, paths=paths, server=server, theme=theme)


def validate_port(port: int) -> None:
    """Raise ValueError unless port is a valid TCP port number."""
    if not 1 <= port <= 65535:
        raise ValueError(f"server.port must be between 1 and 65535, got {port}")
