"""
Модуль определения "эффективной даты" файла.

Эффективная дата - самая поздняя из запрошенных временных меток
(создание, изменение, доступ), которые доступны для файла.
"""

import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional, Union


class TimestampKind(Enum):
    """Тип временной метки файла."""
    CREATED = "created"
    MODIFIED = "modified"
    ACCESSED = "accessed"


DEFAULT_DATE_KINDS = (TimestampKind.CREATED, TimestampKind.MODIFIED)


def _creation_time(stat_result: os.stat_result) -> Optional[float]:
    """Время создания файла, если платформа его предоставляет."""
    birthtime = getattr(stat_result, 'st_birthtime', None)
    if birthtime is not None:
        return birthtime
    # На Windows st_ctime - время создания, на POSIX - время изменения inode
    if os.name == 'nt':
        return stat_result.st_ctime
    return None


def timestamps_from_stat(stat_result: os.stat_result) -> Dict[TimestampKind, Optional[datetime]]:
    """
    Преобразует результат stat() в словарь временных меток.

    Args:
        stat_result: Результат os.stat()

    Returns:
        Dict[TimestampKind, Optional[datetime]]: Метки в локальном времени,
        None для недоступных меток
    """
    created = _creation_time(stat_result)
    return {
        TimestampKind.CREATED: datetime.fromtimestamp(created) if created is not None else None,
        TimestampKind.MODIFIED: datetime.fromtimestamp(stat_result.st_mtime),
        TimestampKind.ACCESSED: datetime.fromtimestamp(stat_result.st_atime),
    }


def read_timestamps(path: Union[str, Path], follow_symlinks: bool = False) -> Dict[TimestampKind, Optional[datetime]]:
    """
    Читает временные метки файла.

    Args:
        path: Путь к файлу
        follow_symlinks: Читать метки цели символической ссылки

    Returns:
        Dict[TimestampKind, Optional[datetime]]: Временные метки файла

    Raises:
        OSError: Если метаданные файла недоступны
    """
    return timestamps_from_stat(os.stat(path, follow_symlinks=follow_symlinks))


def resolve_effective_date(timestamps: Dict[TimestampKind, Optional[datetime]],
                           kinds: Iterable[TimestampKind] = DEFAULT_DATE_KINDS) -> Optional[datetime]:
    """
    Возвращает самую позднюю из запрошенных и доступных временных меток.

    Args:
        timestamps: Временные метки файла
        kinds: Запрошенные типы меток (непустой набор)

    Returns:
        datetime или None: Эффективная дата или None, если ни одна
        из запрошенных меток недоступна

    Raises:
        ValueError: Если набор типов меток пуст
    """
    kinds = tuple(kinds)
    if not kinds:
        raise ValueError("Необходимо указать хотя бы один тип временной метки")

    present = [timestamps[kind] for kind in kinds if timestamps.get(kind) is not None]
    if not present:
        return None
    return max(present)
