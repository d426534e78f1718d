"""Tests for configuration loading."""

from pathlib import Path

import pytest
from haystack.config import CONFIG_FILENAME, Config, PathsConfig, ServerConfig, ThemeConfig


class TestConfigLoad:
    """Tests for Config.load()."""

    def test__explicit_path__loads_config(self, tmp_path: Path) -> None:
        """Load config from explicit path."""
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("""
[paths]
source_dir = "content"
output_dir = "public"
head_include = "layout/head.html"

[server]
host = "127.0.0.1"
port = 8000

[theme]
light = "friendly"
dark = "monokai"
""")

        config = Config.load(config_file)

        assert config.paths.source_dir == tmp_path / "content"
        assert config.paths.output_dir == tmp_path / "public"
        assert config.paths.head_include == tmp_path / "layout" / "head.html"
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 8000
        assert config.theme.light == "friendly"
        assert config.theme.dark == "monokai"
        assert config.config_path == config_file

    def test__minimal_config__uses_defaults(self, tmp_path: Path) -> None:
        """Load minimal config with defaults relative to config file."""
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")

        config = Config.load(config_file)

        assert config.paths.source_dir == tmp_path / "src"
        assert config.paths.output_dir == tmp_path / "output"
        assert config.paths.head_include == tmp_path / "theme" / "head.html"
        assert config.server == ServerConfig()
        assert config.theme == ThemeConfig()

    def test__missing_explicit_path__raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            Config.load(tmp_path / "nonexistent.toml")

    def test__no_config_file__defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without a config file, paths are relative to the working directory."""
        monkeypatch.chdir(tmp_path)

        config = Config.load()

        assert config.paths == PathsConfig()
        assert config.paths.source_dir == Path("src")
        assert config.server.port == 4000
        assert config.config_path is None

    def test__config_in_parent__discovered(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Config files are found in parent directories."""
        (tmp_path / CONFIG_FILENAME).write_text("[server]\nport = 5000\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        config = Config.load()

        assert config.server.port == 5000
        assert config.config_path == tmp_path / CONFIG_FILENAME

    @pytest.mark.parametrize(
        ("content", "message"),
        [
            ("paths = 1", "paths section must be a dictionary"),
            ("[paths]\nsource_dir = 1", "paths.source_dir must be a string"),
            ("[server]\nhost = 1", "server.host must be a string"),
            ('[server]\nport = "80"', "server.port must be an integer"),
            ("[server]\nport = true", "server.port must be an integer"),
            ("[server]\nport = 70000", "server.port must be between 1 and 65535"),
            ("[theme]\nlight = 3", "theme.light must be a string"),
            ("[theme]\ndark = []", "theme.dark must be a string"),
            ("not toml ===", "Invalid TOML"),
        ],
    )
    def test__invalid_values__raise_value_error(self, tmp_path: Path, content: str, message: str) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text(content)

        with pytest.raises(ValueError, match=message):
            Config.load(config_file)


class TestWithOverrides:
    """Tests for Config.with_overrides()."""

    def test__overrides__applied_immutably(self) -> None:
        """Non-None values override, the original is unchanged."""
        config = Config.default()

        updated = config.with_overrides(
            source_dir=Path("docs"),
            port=9000,
            theme_dark="monokai",
        )

        assert updated.paths.source_dir == Path("docs")
        assert updated.paths.output_dir == Path("output")
        assert updated.server.port == 9000
        assert updated.server.host == "0.0.0.0"
        assert updated.theme.dark == "monokai"
        assert updated.theme.light is None
        assert config.paths.source_dir == Path("src")
        assert config.server.port == 4000

    def test__no_overrides__equal_config(self) -> None:
        config = Config.default()

        assert config.with_overrides() == config

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test__invalid_port__raises(self, port: int) -> None:
        with pytest.raises(ValueError, match="server.port must be between"):
            Config.default().with_overrides(port=port)
