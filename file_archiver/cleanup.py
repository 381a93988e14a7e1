"""
Модуль удаления пустых каталогов после перемещения файлов.

Каталоги собираются обходом через явный стек и обрабатываются в обратном
порядке, то есть дочерние раньше родительских. Игнорируемые каталоги не
посещаются и не удаляются; так как они остаются на диске, их родитель
считается непустым. Символические ссылки на каталоги не разыменовываются.
Исходный каталог не удаляется никогда.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .filters import is_ignored
from .logger import FileArchiverLogger
from .models import CleanupOutcome


def collect_directories(source_root: Path, ignored_paths: Iterable[Path] = ()) -> List[Path]:
    """
    Собирает подкаталоги исходного каталога в порядке обхода в глубину.

    Args:
        source_root: Исходный каталог (в результат не входит)
        ignored_paths: Игнорируемые пути

    Returns:
        List[Path]: Каталоги, родитель всегда раньше потомков
    """
    ignored = tuple(ignored_paths)
    directories: List[Path] = []
    stack = [source_root]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as iterator:
                children = sorted(
                    Path(entry.path) for entry in iterator
                    if entry.is_dir(follow_symlinks=False)
                )
        except OSError:
            continue
        for child in children:
            if is_ignored(child, ignored):
                continue
            directories.append(child)
            stack.append(child)
    return directories


def is_directory_empty(path: Path) -> bool:
    with os.scandir(path) as iterator:
        return next(iterator, None) is None


def remove_empty_directories(source_root: Union[str, Path],
                             ignored_paths: Iterable[Path] = (),
                             logger: Optional[FileArchiverLogger] = None) -> List[CleanupOutcome]:
    """
    Удаляет каталоги, в которых не осталось файлов и непустых подкаталогов.

    Args:
        source_root: Исходный каталог
        ignored_paths: Игнорируемые пути
        logger: Логгер

    Returns:
        List[CleanupOutcome]: Итог по каждому просмотренному каталогу
    """
    root = Path(source_root)
    outcomes: List[CleanupOutcome] = []

    for directory in reversed(collect_directories(root, ignored_paths)):
        try:
            if not is_directory_empty(directory):
                outcomes.append(CleanupOutcome(directory, removed=False))
                continue
            directory.rmdir()
        except OSError as e:
            if logger:
                logger.log_warning(f"Не удалось удалить каталог {directory}: {e}")
            outcomes.append(CleanupOutcome(directory, removed=False, error=str(e)))
            continue

        if logger:
            logger.log_directory_removed(directory)
        outcomes.append(CleanupOutcome(directory, removed=True))

    return outcomes
