"""Project scanner: runs the classifiers and relation inference over a tree."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from archscan.classifiers import (
    Classifier,
    ControllerClassifier,
    EntityClassifier,
    EventClassifier,
    RepositoryClassifier,
    ServiceClassifier,
)
from archscan.config import ScanConfig, get_default_config
from archscan.model import Architecture
from archscan.patterns import first_existing_dir
from archscan.relations import RelationAnalyzer

logger = logging.getLogger(__name__)


class InvalidProjectPathError(Exception):
    """The project root does not exist or is not a directory."""

    def __init__(self, path: Path | str):
        self.path = str(path)
        self.message = f"Project path does not exist: {self.path}"
        super().__init__(self.message)

    def to_json(self) -> dict[str, Any]:
        return {
            "error": "invalid_project_path",
            "message": self.message,
            "path": self.path,
        }


def find_source_root(project_path: Path, source_dir: str = "src") -> Optional[Path]:
    """Locate the source root of a project.

    Looks for `<project>/<source_dir>`, then one level deeper
    (`<project>/*/<source_dir>`, first in sorted order).
    """
    direct = project_path / source_dir
    if direct.is_dir():
        return direct

    for candidate in sorted(project_path.glob(f"*/{source_dir}")):
        if candidate.is_dir():
            return candidate
    return None


class ProjectScanner:
    """Builds an Architecture from a PHP project tree."""

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or get_default_config()

    def _classifier_options(self) -> dict[str, Any]:
        return {
            "skip_dirs": self.config.skip_dirs,
            "max_file_size": self.config.max_file_size,
        }

    def _plan(self, source_root: Path) -> list[tuple[Classifier, Optional[Path]]]:
        """Classifiers and the directory each one scans, in run order."""
        dirs = self.config.directories
        patterns = self.config.patterns
        options = self._classifier_options()

        return [
            (EntityClassifier(patterns.entity, **options),
             first_existing_dir(source_root, dirs.entity)),
            (ControllerClassifier(patterns.controller, **options),
             first_existing_dir(source_root, dirs.controller)),
            (RepositoryClassifier(patterns.repository, **options),
             first_existing_dir(source_root, dirs.repository)),
            (ServiceClassifier(patterns.service, **options),
             first_existing_dir(source_root, dirs.service)),
            (EventClassifier(patterns.event, fallback_dirs=dirs.event_fallbacks, **options),
             source_root),
        ]

    def scan(self, project_path: Path | str) -> Architecture:
        """Scan a project and return its architecture.

        Args:
            project_path: Root directory of the project.

        Returns:
            Populated Architecture. Empty when no source root is found.

        Raises:
            InvalidProjectPathError: If project_path is not a directory.
        """
        project_path = Path(project_path)
        if not project_path.is_dir():
            raise InvalidProjectPathError(project_path)

        name = project_path.resolve().name or str(project_path)
        architecture = Architecture(name, f"Architecture diagram for {name}")
        architecture.set_metadata("project_path", str(project_path))
        architecture.set_metadata("scanned_at", datetime.now(timezone.utc).isoformat())

        source_root = find_source_root(project_path, self.config.source_dir)
        if source_root is None:
            logger.info("No %s directory under %s", self.config.source_dir, project_path)
            return architecture

        for classifier, directory in self._plan(source_root):
            if directory is None:
                continue
            for component in classifier.scan(directory):
                component.layer = architecture.layer_for_kind(component.kind) or ""
                architecture.add_component(component)

        RelationAnalyzer(
            max_workers=self.config.relation_workers,
            max_file_size=self.config.max_file_size,
        ).analyze(architecture)

        stats = architecture.statistics()
        logger.info(
            "Scanned %s: %d components, %d relations",
            name, stats["total_components"], stats["total_relations"],
        )
        return architecture
