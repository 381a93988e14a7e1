"""
Модуль перемещения файлов.

В пределах одного тома файл перемещается атомарно (os.rename). Между
томами файл копируется во временный файл рядом с назначением, копия
проверяется по хешу, удаляется исходный файл, и только затем копия
занимает место назначения. Если исходный файл удалить не удалось, копия
удаляется, а файл назначения остается нетронутым.
"""

import errno
import hashlib
import os
import shutil
import uuid
from pathlib import Path

from .logger import FileArchiverLogger
from .models import MoveOperation, MoveOutcome


class FileOperationError(Exception):
    """Исключение для ошибок операций с файлами."""
    pass


def get_file_hash(file_path: Path, algorithm: str = 'md5') -> str:
    """
    Вычисляет хеш файла для проверки целостности.

    Args:
        file_path: Путь к файлу
        algorithm: Алгоритм хеширования (md5, sha1, sha256)

    Returns:
        str: Хеш файла
    """
    if algorithm == 'md5':
        hasher = hashlib.md5()
    elif algorithm == 'sha1':
        hasher = hashlib.sha1()
    elif algorithm == 'sha256':
        hasher = hashlib.sha256()
    else:
        raise ValueError(f"Неподдерживаемый алгоритм: {algorithm}")

    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(65536), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class FileMover:
    """Класс для выполнения запланированных перемещений."""

    def __init__(self, logger: FileArchiverLogger):
        """
        Инициализация.

        Args:
            logger: Логгер для записи операций
        """
        self.logger = logger

    def execute(self, operation: MoveOperation, dry_run: bool = False) -> MoveOutcome:
        """
        Выполняет (или показывает в режиме dry run) перемещение одного файла.

        Args:
            operation: Запланированное перемещение
            dry_run: Не изменять файловую систему

        Returns:
            MoveOutcome: Итог перемещения. Ошибки не пробрасываются,
            а возвращаются как FAILED
        """
        if dry_run:
            self.logger.log_file_moved(operation.source, operation.destination, dry_run=True)
            return MoveOutcome.moved(operation)

        try:
            self._move(operation)
        except (OSError, FileOperationError) as e:
            self.logger.log_file_error(operation.source, e)
            return MoveOutcome.failed(operation.source, str(e), operation.destination)

        self.logger.log_file_moved(operation.source, operation.destination)
        return MoveOutcome.moved(operation)

    def _move(self, operation: MoveOperation) -> None:
        source = operation.source
        destination = operation.destination

        destination.parent.mkdir(parents=True, exist_ok=True)

        if not operation.overwrite and os.path.lexists(destination):
            raise FileOperationError(f"Файл назначения уже существует: {destination}")

        try:
            if operation.overwrite:
                os.replace(source, destination)
            else:
                os.rename(source, destination)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            self._move_across_devices(source, destination)

    def _move_across_devices(self, source: Path, destination: Path) -> None:
        """
        Копирование с проверкой и удалением исходного файла.

        Существующий файл назначения заменяется только после удаления
        исходного файла, поэтому при любой ошибке данные остаются хотя бы
        в одном из мест: в источнике, в назначении или во временной копии.
        """
        temp_path = destination.with_name(f".{destination.name}.{uuid.uuid4().hex}.partial")
        try:
            shutil.copy2(source, temp_path)
            if get_file_hash(source) != get_file_hash(temp_path):
                raise FileOperationError(f"Ошибка целостности файла после копирования: {source}")
        except BaseException:
            self._discard(temp_path)
            raise

        try:
            os.unlink(source)
        except OSError as e:
            self._discard(temp_path)
            raise FileOperationError(
                f"Не удалось удалить исходный файл {source} после копирования, копия удалена: {e}"
            )

        try:
            os.replace(temp_path, destination)
        except OSError as e:
            raise FileOperationError(
                f"Исходный файл {source} удален, но копию не удалось переместить в {destination}. "
                f"Содержимое сохранено в {temp_path}: {e}"
            )

    def _discard(self, path: Path) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.log_warning(f"Не удалось удалить временный файл {path}: {e}")
