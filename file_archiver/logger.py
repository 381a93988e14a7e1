"""
Модуль для настройки и управления логированием приложения.

Обеспечивает централизованную настройку логирования с ротацией файлов,
цветным выводом в консоль и различными уровнями детализации.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from .config_loader import LoggingConfig


LOGGER_NAME = 'file_archiver'
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Форматтер с цветным выводом для консоли."""

    # Цветовые коды ANSI
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Форматирует запись лога с цветом, не изменяя саму запись."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class FileArchiverLogger:
    """Класс для управления логированием приложения File Archiver."""

    def __init__(self, config: "LoggingConfig"):
        """
        Инициализация логгера.

        Args:
            config: Конфигурация логирования
        """
        self.config = config
        self.logger: Optional[logging.Logger] = None
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Настраивает логгер с файловым и консольным выводом."""
        level = getattr(logging, self.config.level.upper())

        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(level)

        # Закрываем обработчики предыдущей настройки
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)

        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        colored_formatter = ColoredFormatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        if self.config.log_file:
            log_file_path = Path(self.config.log_file)
            log_file_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_file_path,
                maxBytes=self.config.max_log_size * 1024 * 1024,  # MB -> байты
                backupCount=self.config.backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(level)
            self.logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(colored_formatter)
        console_handler.setLevel(level)
        self.logger.addHandler(console_handler)

        # Предотвращаем дублирование сообщений
        self.logger.propagate = False

    def get_logger(self) -> logging.Logger:
        """
        Возвращает настроенный логгер.

        Returns:
            logging.Logger: Настроенный логгер
        """
        if self.logger is None:
            raise RuntimeError("Логгер не инициализирован")
        return self.logger

    def log_run_start(self, source: Path, destination: Path, dry_run: bool = False) -> None:
        """
        Логирует начало архивации.

        Args:
            source: Исходный каталог
            destination: Каталог назначения
            dry_run: Режим предварительного просмотра
        """
        mode = " (DRY RUN)" if dry_run else ""
        self.logger.info(f"🚀 Начало архивации{mode}")
        self.logger.info(f"📁 Источник: {source}")
        self.logger.info(f"📦 Назначение: {destination}")
        self.logger.info(f"⏰ Время начала: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    def log_run_end(self, moved: int, skipped: int, failed: int, removed_directories: int,
                    dry_run: bool = False) -> None:
        """
        Логирует завершение архивации.

        Args:
            moved: Перемещено файлов (или было бы перемещено в dry run)
            skipped: Пропущено файлов
            failed: Ошибок
            removed_directories: Удалено пустых каталогов
            dry_run: Режим предварительного просмотра
        """
        if dry_run:
            self.logger.info(f"✅ DRY RUN: было бы перемещено файлов: {moved}")
        else:
            self.logger.info(f"✅ Архивация завершена")
        self.logger.info(f"📊 Статистика:")
        self.logger.info(f"   • Перемещено: {moved}")
        self.logger.info(f"   • Пропущено: {skipped}")
        self.logger.info(f"   • Ошибок: {failed}")
        self.logger.info(f"   • Удалено пустых каталогов: {removed_directories}")
        self.logger.info(f"⏰ Время завершения: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    def log_file_moved(self, source_path: Path, target_path: Path, dry_run: bool = False) -> None:
        """
        Логирует перемещение файла.

        Args:
            source_path: Исходный путь
            target_path: Целевой путь
            dry_run: Перемещение только запланировано
        """
        if dry_run:
            self.logger.info(f"📝 Будет перемещен: {source_path} → {target_path}")
        else:
            self.logger.info(f"📁 Файл перемещен: {source_path} → {target_path}")

    def log_file_skipped(self, source_path: Path, reason: str) -> None:
        """
        Логирует пропуск файла фильтром.

        Args:
            source_path: Путь к файлу
            reason: Причина пропуска
        """
        self.logger.debug(f"⏭️ Пропущен {source_path}: {reason}")

    def log_file_error(self, source_path: Union[Path, str], error: Union[Exception, str]) -> None:
        """
        Логирует ошибку при обработке файла.

        Args:
            source_path: Путь к файлу
            error: Исключение или описание ошибки
        """
        self.logger.error(f"❌ Ошибка при обработке файла {source_path}: {error}")

    def log_directory_removed(self, path: Path) -> None:
        """
        Логирует удаление пустого каталога.

        Args:
            path: Путь к каталогу
        """
        self.logger.info(f"🧹 Удален пустой каталог: {path}")

    def log_config_loaded(self, config_path: str) -> None:
        """
        Логирует успешную загрузку конфигурации.

        Args:
            config_path: Путь к файлу конфигурации
        """
        self.logger.info(f"⚙️ Конфигурация загружена из {config_path}")

    def log_system_info(self, info: str) -> None:
        """
        Логирует системную информацию.

        Args:
            info: Информационное сообщение
        """
        self.logger.info(f"ℹ️ {info}")

    def log_warning(self, message: str) -> None:
        """
        Логирует предупреждение.

        Args:
            message: Сообщение предупреждения
        """
        self.logger.warning(f"⚠️ {message}")

    def log_critical_error(self, message: str, error: Exception = None) -> None:
        """
        Логирует критическую ошибку.

        Args:
            message: Сообщение об ошибке
            error: Исключение (опционально)
        """
        if error:
            self.logger.critical(f"💥 {message}: {error}")
        else:
            self.logger.critical(f"💥 {message}")


def setup_logger(config: "LoggingConfig") -> logging.Logger:
    """
    Удобная функция для быстрой настройки логгера.

    Args:
        config: Конфигурация логирования

    Returns:
        logging.Logger: Настроенный логгер
    """
    archiver_logger = FileArchiverLogger(config)
    return archiver_logger.get_logger()


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Получает логгер по имени.

    Args:
        name: Имя логгера

    Returns:
        logging.Logger: Логгер
    """
    return logging.getLogger(name)
