"""Batch build of a source tree into a static output tree.

Documents are rendered to ``.html``; every other file is copied unchanged.
Files are processed in parallel; a failure on one file is reported and the
build carries on with the rest.
"""

import enum
import logging
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from haystack.core.formats import DOCUMENT_EXTENSIONS, is_document
from haystack.core.paths import ensure_parent, output_path_for
from haystack.core.renderer import PageRenderer
from haystack.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _precedence(path: Path) -> int:
    return DOCUMENT_EXTENSIONS.index(path.suffix.lower())


class BuildAction(enum.Enum):
    BUILT = "built"
    COPIED = "copied"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildResult:
    """Outcome for a single source file."""

    action: BuildAction
    source: Path
    destination: Path
    error: str | None = None


@dataclass
class BuildReport:
    """Summary of a build pass."""

    results: list[BuildResult] = field(default_factory=list)

    @property
    def built(self) -> list[BuildResult]:
        return [r for r in self.results if r.action is BuildAction.BUILT]

    @property
    def copied(self) -> list[BuildResult]:
        return [r for r in self.results if r.action is BuildAction.COPIED]

    @property
    def failures(self) -> list[BuildResult]:
        return [r for r in self.results if r.action is BuildAction.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failures


class SiteBuilder:
    """Builds the output tree from the source tree."""

    def __init__(
        self,
        renderer: PageRenderer,
        source_dir: Path,
        output_dir: Path,
        *,
        jobs: int | None = None,
    ) -> None:
        """Initialize builder.

        Args:
            renderer: Shared page renderer
            source_dir: Root of the source tree
            output_dir: Root of the output tree (created if missing)
            jobs: Worker threads; None lets the executor decide
        """
        self._renderer = renderer
        self._source_dir = source_dir
        self._output_dir = output_dir
        self._jobs = jobs

    def discover(self) -> list[Path]:
        """List source files in a stable order, skipping the output tree.

        Files that would write the same output path as a higher-precedence
        document are dropped, so the result matches what serve mode shows.
        """
        output_dir = self._output_dir.resolve()
        files: list[Path] = []
        for path in sorted(self._source_dir.rglob("*")):
            if not path.is_file():
                continue
            if path.resolve().is_relative_to(output_dir):
                continue
            files.append(path)
        return self._drop_shadowed(files)

    def _drop_shadowed(self, files: list[Path]) -> list[Path]:
        winners: dict[Path, Path] = {}
        for path in files:
            if not is_document(path):
                continue
            destination = output_path_for(path, self._source_dir, self._output_dir)
            current = winners.get(destination)
            if current is None or _precedence(path) < _precedence(current):
                winners[destination] = path

        kept: list[Path] = []
        for path in files:
            destination = output_path_for(path, self._source_dir, self._output_dir)
            winner = winners.get(destination)
            if winner is not None and winner != path:
                logger.warning(f"Skipping {path}: {winner} is rendered to {destination}")
                continue
            kept.append(path)
        return kept

    def build(self) -> BuildReport:
        """Render and copy every source file.

        Returns:
            BuildReport with one result per source file

        Raises:
            ConfigurationError: If the source directory does not exist
            OSError: If the output directory cannot be created
        """
        if not self._source_dir.is_dir():
            raise ConfigurationError(f"src folder not found: {self._source_dir}")
        self._output_dir.mkdir(parents=True, exist_ok=True)

        files = self.discover()
        logger.info(f"Building {len(files)} files from {self._source_dir} into {self._output_dir}")

        with ThreadPoolExecutor(max_workers=self._jobs) as executor:
            results = list(executor.map(self.process, files))

        return BuildReport(results=results)

    def process(self, source: Path) -> BuildResult:
        """Render or copy one source file into the output tree."""
        destination = output_path_for(source, self._source_dir, self._output_dir)
        try:
            ensure_parent(destination)
            if is_document(source):
                destination.write_bytes(self._renderer.render_file(source))
                logger.info(f"Built {source} -> {destination}")
                return BuildResult(BuildAction.BUILT, source, destination)

            shutil.copy2(source, destination)
            logger.info(f"Copied {source} -> {destination}")
            return BuildResult(BuildAction.COPIED, source, destination)
        except OSError as e:
            logger.error(f"Failed to build {source}: {e}")
            return BuildResult(BuildAction.FAILED, source, destination, error=str(e))
        except Exception as e:
            logger.exception(f"Failed to render {source}")
            return BuildResult(BuildAction.FAILED, source, destination, error=f"{type(e).__name__}: {e}")
