"""
Модуль планирования путей назначения.

Путь назначения: destination_root / [метка периода /] относительный путь.
Относительная структура каталогов сохраняется без изменений.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Set, Union

from .models import CollisionPolicy, FileEntry, MoveOperation, MoveOutcome, SkipReason
from .periods import GroupBy, period_label


def compute_destination(relative_path: Union[str, Path],
                        destination_root: Union[str, Path],
                        label: Optional[str] = None) -> Path:
    """
    Вычисляет путь назначения файла.

    Args:
        relative_path: Путь файла относительно исходного каталога
        destination_root: Каталог назначения
        label: Метка периода (None - без группировки)

    Returns:
        Path: Путь назначения внутри destination_root

    Raises:
        ValueError: Если относительный путь пустой, абсолютный или содержит ".."
    """
    relative_path = Path(relative_path)
    if relative_path.is_absolute() or relative_path.anchor:
        raise ValueError(f"Ожидается относительный путь: {relative_path}")
    if not relative_path.parts or relative_path == Path('.'):
        raise ValueError("Относительный путь не может быть пустым")
    if '..' in relative_path.parts:
        raise ValueError(f"Относительный путь не может выходить за пределы каталога: {relative_path}")

    destination = Path(destination_root)
    if label:
        destination = destination / label
    return destination / relative_path


def get_unique_filename(directory: Path, filename: str, reserved: Optional[Set[Path]] = None) -> Path:
    """
    Получает свободное имя файла в каталоге: name_1.ext, name_2.ext, ...

    Args:
        directory: Каталог назначения
        filename: Исходное имя файла
        reserved: Пути, уже занятые запланированными перемещениями

    Returns:
        Path: Уникальный путь
    """
    reserved = reserved or set()
    base_path = directory / filename
    if not base_path.exists() and base_path not in reserved:
        return base_path

    name_parts = filename.rsplit('.', 1)
    if len(name_parts) == 2 and name_parts[0]:
        base_name, extension = name_parts
        extension = '.' + extension
    else:
        base_name = filename
        extension = ''

    counter = 1
    while True:
        new_path = directory / f"{base_name}_{counter}{extension}"
        if not new_path.exists() and new_path not in reserved:
            return new_path
        counter += 1


class PathPlanner:
    """Планировщик перемещений с учетом конфликтов назначения."""

    def __init__(self, destination_root: Union[str, Path],
                 group_by: Optional[GroupBy] = None,
                 collision_policy: CollisionPolicy = CollisionPolicy.FAIL):
        """
        Инициализация планировщика.

        Args:
            destination_root: Каталог назначения
            group_by: Стратегия группировки (None - без группировки)
            collision_policy: Поведение при существующем файле назначения
        """
        self.destination_root = Path(destination_root)
        self.group_by = group_by
        self.collision_policy = collision_policy
        self._planned: Set[Path] = set()

    def plan(self, entry: FileEntry, effective_date: datetime) -> Union[MoveOperation, MoveOutcome]:
        """
        Планирует перемещение файла.

        Args:
            entry: Принятый фильтром файл
            effective_date: Эффективная дата файла

        Returns:
            MoveOperation если перемещение возможно, иначе MoveOutcome
            с пропуском или ошибкой конфликта
        """
        label = period_label(effective_date, self.group_by) if self.group_by else None
        destination = compute_destination(entry.relative_path, self.destination_root, label)
        overwrite = False

        if destination.exists() or destination in self._planned:
            policy = self.collision_policy
            if policy is CollisionPolicy.SKIP:
                return MoveOutcome.skipped(entry.path, SkipReason.DESTINATION_EXISTS, destination)
            if policy is CollisionPolicy.RENAME:
                destination = get_unique_filename(destination.parent, destination.name, self._planned)
            elif policy is CollisionPolicy.OVERWRITE and destination not in self._planned:
                overwrite = True
            else:
                return MoveOutcome.failed(
                    entry.path, f"Файл назначения уже существует: {destination}", destination
                )

        self._planned.add(destination)
        return MoveOperation(entry.path, destination, label, overwrite)
