"""
Модели данных архиватора.

Записи, которые передаются между этапами: обход -> фильтр ->
планирование -> перемещение -> очистка.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from .timestamps import TimestampKind


class SkipReason(Enum):
    """Причина, по которой файл намеренно не перемещается."""
    IGNORED = "ignored"
    DEPTH = "outside depth bounds"
    UNRESOLVED_DATE = "no requested timestamp available"
    NOT_OLDER_THAN_CUTOFF = "not older than cutoff"
    CURRENT_OR_FUTURE_PERIOD = "current or future period"
    DESTINATION_EXISTS = "destination already exists"


class MoveStatus(Enum):
    """Результат обработки файла."""
    MOVED = "moved"
    SKIPPED = "skipped"
    FAILED = "failed"


class CollisionPolicy(Enum):
    """Поведение при существующем файле в месте назначения."""
    FAIL = "fail"
    SKIP = "skip"
    RENAME = "rename"
    OVERWRITE = "overwrite"


@dataclass(frozen=True)
class FileEntry:
    """Файл, найденный при обходе исходного каталога."""
    path: Path
    relative_path: Path
    depth: int
    timestamps: Dict[TimestampKind, Optional[datetime]] = field(default_factory=dict, hash=False)
    metadata_error: Optional[str] = None


@dataclass(frozen=True)
class MoveOperation:
    """Запланированное перемещение файла."""
    source: Path
    destination: Path
    period_label: Optional[str] = None
    overwrite: bool = False


@dataclass(frozen=True)
class MoveOutcome:
    """Итог обработки одного файла."""
    source: Path
    destination: Optional[Path]
    status: MoveStatus
    reason: Optional[str] = None

    @classmethod
    def moved(cls, operation: MoveOperation) -> "MoveOutcome":
        return cls(operation.source, operation.destination, MoveStatus.MOVED)

    @classmethod
    def skipped(cls, source: Path, reason: SkipReason, destination: Optional[Path] = None) -> "MoveOutcome":
        return cls(source, destination, MoveStatus.SKIPPED, reason.value)

    @classmethod
    def failed(cls, source: Path, reason: str, destination: Optional[Path] = None) -> "MoveOutcome":
        return cls(source, destination, MoveStatus.FAILED, reason)


@dataclass(frozen=True)
class CleanupOutcome:
    """Итог обработки каталога при очистке."""
    path: Path
    removed: bool
    error: Optional[str] = None
