"""Baseline store: PNG baselines on disk, one file per screenshot artifact."""

from __future__ import annotations

import logging
from pathlib import Path

from pdfqa.errors import MissingBaselineError
from pdfqa.models.results import ArtifactId

logger = logging.getLogger(__name__)


class BaselineStore:
    """Maps artifacts to deterministic baseline paths.

    Layout: ``<snapshot_root>/<test file name>-snapshots/<stem>-<browser>-<platform>.png``
    """

    def __init__(
        self,
        snapshot_root: Path,
        test_file: str,
        browser_name: str = "chromium",
        platform: str = "linux",
        update_command: str = "pdfqa baselines create",
    ):
        self.snapshot_root = snapshot_root
        self.test_file = Path(test_file).name
        self.browser_name = browser_name
        self.platform = platform
        self.update_command = update_command

    @property
    def snapshots_dir(self) -> Path:
        return self.snapshot_root / f"{self.test_file}-snapshots"

    def path_for(self, artifact: ArtifactId) -> Path:
        return self.snapshots_dir / f"{artifact.stem}-{self.browser_name}-{self.platform}.png"

    def exists(self, artifact: ArtifactId) -> bool:
        return self.path_for(artifact).is_file()

    def require(self, artifact: ArtifactId) -> Path:
        """Return the baseline path or fail with the command that creates it."""
        path = self.path_for(artifact)
        if not path.is_file():
            raise MissingBaselineError(path, self.update_command)
        return path

    def read(self, artifact: ArtifactId) -> bytes:
        return self.require(artifact).read_bytes()

    def write(self, artifact: ArtifactId, data: bytes) -> Path:
        path = self.path_for(artifact)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Created baseline: %s", artifact.display_name)
        return path
