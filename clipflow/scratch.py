"""Per-job scratch directories for intermediate audio."""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


class ScratchArena:
    """Hands out one private directory per in-flight job.

    Slots are released (deleted) when the job's ``with`` block exits, so
    concurrent jobs never share a filename.
    """

    def __init__(self, root: Path | None = None) -> None:
        env_root = os.environ.get("CLIPFLOW_SCRATCH_DIR")
        self.root = Path(root or env_root or tempfile.gettempdir())

    @contextmanager
    def slot(self, job_id: str) -> Iterator[Path]:
        self.root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix=f"clipflow_{job_id}_", dir=self.root) as tmpdir:
            logger.debug("scratch slot for job %s: %s", job_id, tmpdir)
            yield Path(tmpdir)
