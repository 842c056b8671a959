"""Batch deletion backend.

Moves staged images to the OS trash with send2trash and writes an audit CSV
log. A batch either succeeds entirely or is reported as a single
`DeletionError` listing every path that failed.
"""

from __future__ import annotations

from collections.abc import Sequence
import csv
from datetime import datetime
import os
from pathlib import Path

from loguru import logger
from send2trash import send2trash
from send2trash.exceptions import TrashPermissionError

from core.errors import DeletionError
from core.models import ImageHandle
from core.services.interfaces import DeleteResult
from infrastructure.logging import get_delete_log_directory


class DeleteService:
    """Deletion backend that sends files to the recycle bin."""

    def __init__(self, log_dir: str | None = None) -> None:
        self._log_dir = log_dir

    def delete_permanently(self, handles: Sequence[ImageHandle]) -> DeleteResult:
        """Trash every file in `handles` and log the outcome.

        Every path is checked before anything is touched so that a missing
        file fails the batch without deleting the rest.

        Raises:
            DeletionError: If any path is missing or could not be trashed.
        """
        paths = [h.identifier for h in handles]
        missing = [(p, "File does not exist") for p in paths if not os.path.exists(p)]
        if missing:
            for p, _ in missing:
                logger.error("File does not exist: {}", p)
            raise DeletionError(
                f"{len(missing)} of {len(paths)} files are missing, nothing was deleted", missing
            )

        result = self.delete_to_recycle(paths)
        self.write_log(result)
        if result.failed:
            raise DeletionError(
                f"{len(result.failed)} of {len(paths)} files could not be deleted", result.failed
            )
        return result

    def delete_to_recycle(self, paths: list[str]) -> DeleteResult:
        """Send files to recycle bin and report per-path results."""
        success: list[str] = []
        failed: list[tuple[str, str]] = []
        for p in paths:
            normalized_path = os.path.normpath(p)
            try:
                send2trash(normalized_path)
                success.append(p)
            except (UnicodeEncodeError, OSError, TrashPermissionError) as ex:
                logger.warning("Failed to delete with normalized path {}: {}", normalized_path, ex)
                # Retry once with the absolute path
                try:
                    send2trash(os.path.abspath(p))
                    success.append(p)
                except (UnicodeEncodeError, OSError, TrashPermissionError) as ex2:
                    logger.error("All delete methods failed for {}: {} / {}", p, ex, ex2)
                    failed.append((p, f"Multiple delete failures: {ex}, {ex2}"))
        return DeleteResult(success_paths=success, failed=failed)

    def write_log(self, result: DeleteResult) -> None:
        """Write an audit CSV for `result` and record its path on the result."""
        try:
            base_dir = Path(os.path.expandvars(self._log_dir or get_delete_log_directory()))
            base_dir.mkdir(parents=True, exist_ok=True)
            ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_path = base_dir / f"delete_{ts}.csv"
            with log_path.open("w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(["FilePath", "Success", "Reason"])
                for p in result.success_paths:
                    writer.writerow([p, 1, ""])
                for p, reason in result.failed:
                    writer.writerow([p, 0, reason])
            result.log_path = str(log_path)
            logger.info(
                "Delete log written: {} ({} success, {} failed)",
                log_path,
                len(result.success_paths),
                len(result.failed),
            )
        except (OSError, ValueError) as ex:
            logger.error("Write delete log failed: {}", ex)
