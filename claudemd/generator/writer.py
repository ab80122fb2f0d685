"""Backup-then-write persistence of validated documents.

Each target file is written inside a :class:`PendingBackup` scope. Any
existing file is copied to ``<name>.backup.<YYYYMMDD-HHMMSS>`` before it is
touched. If writing the new content fails, the backup is restored over the
target, so the directory is left as it was found.

The sequence is not atomic across processes: two simultaneous runs against
the same directory can interleave. Callers must not do that.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType
from typing import Optional

from claudemd.config import Config
from claudemd.guard.paths import Operation, PathGuard, PathNotAllowedError
from claudemd.models import ClaudeMdError, ValidationResult, WriteResult

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
GITIGNORE_HEADER = "# Backups of generated documents"


class BackupError(ClaudeMdError):
    """Raised when an existing file could not be backed up."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not back up {path.name}: {reason}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_text(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


def backup_path_for(target: Path, stamp: str) -> Path:
    """First free ``<name>.backup.<stamp>`` path next to *target*."""
    candidate = target.with_name(f"{target.name}.backup.{stamp}")
    counter = 1
    while candidate.exists():
        candidate = target.with_name(f"{target.name}.backup.{stamp}-{counter}")
        counter += 1
    return candidate


def _relative(path: Path, root: Path) -> str:
    """Return *path* relative to *root* as a forward-slash string."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


# ---------------------------------------------------------------------------
# PendingBackup
# ---------------------------------------------------------------------------


class PendingBackup:
    """Scope guaranteeing a target is either committed or restored.

    On enter, an existing target is copied to a timestamped backup
    (:class:`BackupError` if that fails, in which case nothing has been
    written). If the block raises, the backup is copied back over the
    target, or a partially written new file is removed when there was no
    prior file. A failed restore is recorded in ``restore_error``; the
    original exception always propagates.
    """

    def __init__(self, target: Path, stamp: str) -> None:
        self.target = target
        self.stamp = stamp
        self.backup_path: Optional[Path] = None
        self.restored = False
        self.restore_error: Optional[str] = None

    def __enter__(self) -> "PendingBackup":
        if self.target.exists():
            backup = backup_path_for(self.target, self.stamp)
            try:
                shutil.copy2(self.target, backup)
            except OSError as exc:
                raise BackupError(self.target, str(exc)) from exc
            self.backup_path = backup
            logger.debug("Backed up %s to %s", self.target, backup)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if exc_type is None:
            return False
        try:
            if self.backup_path is not None:
                shutil.copy2(self.backup_path, self.target)
                self.restored = True
                logger.warning("Write to %s failed; restored from backup", self.target)
            elif self.target.exists():
                self.target.unlink()
        except OSError as restore_exc:
            self.restore_error = str(restore_exc)
            logger.error("Could not restore %s: %s", self.target, restore_exc)
        return False


# ---------------------------------------------------------------------------
# DocumentWriter
# ---------------------------------------------------------------------------


class DocumentWriter:
    """Persists validated documents into a target directory."""

    def __init__(self, path_guard: PathGuard | None = None, config: Config | None = None) -> None:
        self.config = config or Config()
        self.path_guard = path_guard or PathGuard(self.config.path_policy)

    def write(self, validated: ValidationResult, target_dir: str | Path) -> WriteResult:
        """Write the primary (and optional secondary) document.

        Nothing is touched when *validated* is not valid, when the target
        directory is missing, or when a target name is outside the write
        policy.
        """
        if not validated.is_valid:
            return WriteResult(
                success=False,
                warnings=list(validated.warnings),
                errors=["Content failed validation; nothing written", *validated.errors],
            )

        root = Path(target_dir)
        if not root.is_dir():
            return WriteResult(success=False, errors=[f"Target directory does not exist: {root}"])

        outputs: list[tuple[str, str]] = [(self.config.primary_filename, validated.rendered.content)]
        if validated.rendered.secondary_content is not None:
            outputs.append((self.config.secondary_filename, validated.rendered.secondary_content))

        denied = [name for name, _ in outputs if not self.path_guard.is_path_allowed(name, Operation.WRITE)]
        if denied:
            return WriteResult(
                success=False,
                errors=[f"Write not permitted by path policy: {name}" for name in denied],
            )

        stamp = datetime.now().strftime(BACKUP_TIMESTAMP_FORMAT)
        written: list[str] = []
        backups: list[str] = []
        warnings: list[str] = list(validated.warnings)
        errors: list[str] = []

        for name, content in outputs:
            target = root / name
            pending = PendingBackup(target, stamp)
            try:
                with pending:
                    _write_text(target, content)
            except BackupError as exc:
                errors.append(str(exc))
                break
            except OSError as exc:
                errors.append(f"Failed to write {name}: {exc}")
                if pending.restore_error is not None:
                    warnings.append(f"Could not restore {name} from backup: {pending.restore_error}")
                elif pending.restored:
                    warnings.append(f"Restored {name} from backup after failed write")
                if pending.backup_path is not None:
                    backups.append(_relative(pending.backup_path, root))
                break

            written.append(_relative(target, root))
            if pending.backup_path is not None:
                backups.append(_relative(pending.backup_path, root))
            logger.info("Wrote %s", target)

        gitignore_updated = False
        try:
            gitignore_updated = self.update_gitignore(root, made_backups=bool(backups))
        except (OSError, UnicodeDecodeError, PathNotAllowedError) as exc:
            warnings.append(f"Could not update {self.config.ignore_filename}: {exc}")

        return WriteResult(
            success=not errors,
            written_files=written,
            backup_files=backups,
            warnings=warnings,
            errors=errors,
            gitignore_updated=gitignore_updated,
            timestamp=datetime.now(timezone.utc),
        )

    def update_gitignore(self, root: Path, made_backups: bool) -> bool:
        """Make sure the ignore list covers backup files.

        An existing ignore list gets any missing backup patterns appended.
        A missing one is created only when a backup was actually made.

        Returns:
            ``True`` if the file was created or modified.
        """
        name = self.config.ignore_filename
        self.path_guard.check(name, Operation.WRITE)
        path = root / name
        patterns = self.config.backup_patterns

        if path.exists():
            existing = path.read_text(encoding="utf-8")
            present = {line.strip() for line in existing.splitlines()}
            missing = [pattern for pattern in patterns if pattern not in present]
            if not missing:
                return False
            prefix = "" if not existing or existing.endswith("\n") else "\n"
            block = "\n".join([GITIGNORE_HEADER, *missing])
            _write_text(path, f"{existing}{prefix}\n{block}\n" if existing else f"{block}\n")
            return True

        if not made_backups:
            return False
        _write_text(path, "\n".join([GITIGNORE_HEADER, *patterns]) + "\n")
        return True
