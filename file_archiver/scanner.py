"""
Модуль обхода исходного каталога.

Обход выполняется через явный стек, без рекурсии. Игнорируемые каталоги
и каталоги глубже max_depth не посещаются. При следовании символическим
ссылкам уже посещенные каталоги (st_dev, st_ino) повторно не обходятся.
"""

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple, Union

from .filters import is_ignored
from .logger import FileArchiverLogger
from .models import FileEntry
from .timestamps import read_timestamps


def _directory_key(path: Path) -> Tuple[int, int]:
    stat_result = os.stat(path)
    return stat_result.st_dev, stat_result.st_ino


def scan_source(source_root: Union[str, Path],
                ignored_paths: Iterable[Path] = (),
                max_depth: Optional[int] = None,
                follow_symlinks: bool = False,
                logger: Optional[FileArchiverLogger] = None) -> Iterator[FileEntry]:
    """
    Перечисляет файлы исходного каталога.

    Args:
        source_root: Исходный каталог
        ignored_paths: Игнорируемые пути (каталоги не посещаются)
        max_depth: Максимальная глубина файлов (файл в корне имеет глубину 1)
        follow_symlinks: Следовать символическим ссылкам
        logger: Логгер для предупреждений

    Yields:
        FileEntry: Найденные файлы в детерминированном порядке
    """
    root = Path(source_root)
    ignored = tuple(ignored_paths)
    visited: Set[Tuple[int, int]] = set()
    if follow_symlinks:
        visited.add(_directory_key(root))

    stack: List[Tuple[Path, int]] = [(root, 0)]
    while stack:
        directory, depth = stack.pop()

        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda e: e.name)
        except OSError as e:
            if logger:
                logger.log_warning(f"Не удалось прочитать каталог {directory}: {e}")
            continue

        subdirectories = []
        child_depth = depth + 1
        for entry in entries:
            path = Path(entry.path)

            if entry.is_symlink() and not follow_symlinks:
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=follow_symlinks)
            except OSError:
                is_dir = False

            if is_dir:
                if is_ignored(path, ignored):
                    continue
                # Файлы внутри имели бы глубину child_depth + 1
                if max_depth is not None and child_depth >= max_depth:
                    continue
                if follow_symlinks:
                    try:
                        key = _directory_key(path)
                    except OSError as e:
                        if logger:
                            logger.log_warning(f"Не удалось прочитать каталог {path}: {e}")
                        continue
                    if key in visited:
                        if logger:
                            logger.log_warning(f"Каталог уже посещен, пропуск цикла ссылок: {path}")
                        continue
                    visited.add(key)
                subdirectories.append((path, child_depth))
                continue

            try:
                is_file = entry.is_file(follow_symlinks=follow_symlinks)
            except OSError:
                is_file = False
            if not is_file:
                continue

            relative_path = path.relative_to(root)
            try:
                timestamps = read_timestamps(path, follow_symlinks=follow_symlinks)
            except OSError as e:
                yield FileEntry(path, relative_path, child_depth, {}, metadata_error=str(e))
                continue
            yield FileEntry(path, relative_path, child_depth, timestamps)

        # Обратный порядок, чтобы подкаталоги извлекались из стека по алфавиту
        stack.extend(reversed(subdirectories))
