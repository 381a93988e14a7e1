"""
Модуль бизнес-логики архивации файлов.

Объединяет обход, фильтрацию, планирование, перемещение и очистку.
Этапы выполняются строго последовательно, по одному файлу: очистка
должна видеть состояние исходного дерева после всех перемещений.
"""

import os
from datetime import datetime
from typing import Dict, List, Optional

from .cleanup import remove_empty_directories
from .config_loader import Config
from .filters import FileFilter, is_ignored
from .logger import FileArchiverLogger
from .models import CleanupOutcome, MoveOperation, MoveOutcome, MoveStatus, SkipReason
from .mover import FileMover
from .planner import PathPlanner
from .scanner import scan_source


class ArchiveError(Exception):
    """Исключение для ошибок архивации, прерывающих запуск."""
    pass


class SourceRootError(ArchiveError):
    """Исходный каталог не существует или недоступен."""
    pass


class ArchiveReport:
    """Отчет о запуске архивации."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.moves: List[MoveOutcome] = []
        self.cleanup: List[CleanupOutcome] = []
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None

    def add_move(self, outcome: MoveOutcome) -> None:
        self.moves.append(outcome)

    def _with_status(self, status: MoveStatus) -> List[MoveOutcome]:
        return [outcome for outcome in self.moves if outcome.status is status]

    @property
    def moved(self) -> List[MoveOutcome]:
        return self._with_status(MoveStatus.MOVED)

    @property
    def skipped(self) -> List[MoveOutcome]:
        return self._with_status(MoveStatus.SKIPPED)

    @property
    def failed(self) -> List[MoveOutcome]:
        return self._with_status(MoveStatus.FAILED)

    @property
    def removed_directories(self) -> List[CleanupOutcome]:
        return [outcome for outcome in self.cleanup if outcome.removed]

    @property
    def cleanup_errors(self) -> List[CleanupOutcome]:
        return [outcome for outcome in self.cleanup if outcome.error]

    def has_failures(self) -> bool:
        """Есть ли ошибки перемещения или очистки."""
        return bool(self.failed or self.cleanup_errors)

    def get_duration(self) -> Optional[float]:
        """Возвращает продолжительность запуска в секундах."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def to_dict(self) -> Dict:
        """Преобразует отчет в словарь."""
        return {
            'dry_run': self.dry_run,
            'processed_files': len(self.moves),
            'moved_files': len(self.moved),
            'skipped_files': len(self.skipped),
            'failed_files': len(self.failed),
            'removed_directories': len(self.removed_directories),
            'cleanup_errors': len(self.cleanup_errors),
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration_seconds': self.get_duration(),
        }


class Archiver:
    """Основной класс для архивации файлов."""

    def __init__(self, config: Config, logger: FileArchiverLogger):
        """
        Инициализация архиватора.

        Args:
            config: Конфигурация приложения
            logger: Логгер для записи операций
        """
        self.config = config
        self.logger = logger
        self.source = config.paths.source
        self.destination = config.paths.destination
        self.ignored_paths = self._effective_ignored_paths()
        self.file_filter = FileFilter(config.archiver)
        self.mover = FileMover(logger)

    def _effective_ignored_paths(self) -> tuple:
        """Игнорируемые пути плюс каталог назначения, если он внутри источника."""
        ignored = tuple(self.config.archiver.ignored_paths)
        if is_ignored(self.destination, (self.source,)) and not is_ignored(self.destination, ignored):
            ignored += (self.destination,)
        return ignored

    def check_environment(self) -> None:
        """
        Проверяет исходный каталог и каталог назначения до начала работы.

        Raises:
            SourceRootError: Если исходный каталог недоступен
            ArchiveError: Если каталог назначения не является каталогом
        """
        if not self.source.exists():
            raise SourceRootError(f"Исходный каталог не существует: {self.source}")
        if not self.source.is_dir():
            raise SourceRootError(f"Исходный путь не является каталогом: {self.source}")
        try:
            with os.scandir(self.source) as iterator:
                next(iterator, None)
        except OSError as e:
            raise SourceRootError(f"Исходный каталог недоступен: {self.source}: {e}")

        if self.destination.exists():
            if not self.destination.is_dir():
                raise ArchiveError(f"Путь назначения не является каталогом: {self.destination}")
        elif not self.config.archiver.dry_run:
            self.logger.log_system_info(f"Каталог назначения не существует, создаем: {self.destination}")
            try:
                self.destination.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ArchiveError(f"Не удалось создать каталог назначения {self.destination}: {e}")

        for path in self.config.archiver.ignored_paths:
            if not path.exists():
                self.logger.log_warning(f"Игнорируемый путь не существует: {path}")

    def run(self, now: Optional[datetime] = None) -> ArchiveReport:
        """
        Выполняет архивацию.

        Args:
            now: Текущий момент для фильтра периодов (по умолчанию datetime.now())

        Returns:
            ArchiveReport: Отчет по каждому файлу и каталогу

        Raises:
            SourceRootError, ArchiveError: Если окружение не позволяет начать работу
        """
        if now is None:
            now = datetime.now()

        settings = self.config.archiver
        report = ArchiveReport(dry_run=settings.dry_run)
        report.start_time = datetime.now()

        self.check_environment()
        self.logger.log_run_start(self.source, self.destination, settings.dry_run)

        planner = PathPlanner(self.destination, settings.group_by, settings.on_collision)
        entries = scan_source(
            self.source,
            ignored_paths=self.ignored_paths,
            max_depth=settings.max_depth,
            follow_symlinks=settings.follow_symlinks,
            logger=self.logger
        )

        for entry in entries:
            # Игнорируемый файл или файл вне границ глубины пропускается, даже если stat() не удался
            if entry.metadata_error and self.file_filter.check_location(entry) is None:
                self.logger.log_file_error(entry.path, entry.metadata_error)
                report.add_move(MoveOutcome.failed(entry.path, entry.metadata_error))
                continue

            decision = self.file_filter.evaluate(entry, now)
            if not decision.accepted:
                self.logger.log_file_skipped(entry.path, decision.reason.value)
                report.add_move(MoveOutcome.skipped(entry.path, decision.reason))
                continue

            try:
                planned = planner.plan(entry, decision.effective_date)
            except (ValueError, OSError) as e:
                self.logger.log_file_error(entry.path, e)
                report.add_move(MoveOutcome.failed(entry.path, str(e)))
                continue

            if isinstance(planned, MoveOperation):
                report.add_move(self.mover.execute(planned, settings.dry_run))
            else:
                if planned.status is MoveStatus.FAILED:
                    self.logger.log_file_error(entry.path, planned.reason)
                else:
                    self.logger.log_file_skipped(entry.path, SkipReason.DESTINATION_EXISTS.value)
                report.add_move(planned)

        if not settings.dry_run and not settings.keep_empty_folders:
            report.cleanup = remove_empty_directories(self.source, self.ignored_paths, self.logger)

        report.end_time = datetime.now()
        self.logger.log_run_end(
            moved=len(report.moved),
            skipped=len(report.skipped),
            failed=len(report.failed),
            removed_directories=len(report.removed_directories),
            dry_run=settings.dry_run
        )
        return report


def create_archiver(config: Config, logger: FileArchiverLogger) -> Archiver:
    """
    Удобная функция для создания объекта архиватора.

    Args:
        config: Конфигурация приложения
        logger: Логгер

    Returns:
        Archiver: Объект архиватора
    """
    return Archiver(config, logger)
