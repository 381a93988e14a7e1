"""
Модуль для загрузки и валидации конфигурации приложения.

Обеспечивает загрузку параметров из INI-файла (config/settings.ini),
объединение их с параметрами командной строки и валидацию до начала
обхода файлов.
"""

import configparser
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .periods import GroupBy
from .models import CollisionPolicy
from .timestamps import DEFAULT_DATE_KINDS, TimestampKind


class ConfigurationError(ValueError):
    """Исключение для некорректной конфигурации."""
    pass


@dataclass
class PathsConfig:
    """Конфигурация путей."""
    source: Path
    destination: Path


@dataclass
class ArchiverConfig:
    """Конфигурация правил архивации."""
    group_by: Optional[GroupBy] = None
    previous_period_only: bool = False
    older_than: Optional[datetime] = None
    file_date_types: Tuple[TimestampKind, ...] = DEFAULT_DATE_KINDS
    ignored_paths: Tuple[Path, ...] = ()
    min_depth: Optional[int] = None
    max_depth: Optional[int] = None
    follow_symlinks: bool = False
    keep_empty_folders: bool = False
    dry_run: bool = False
    on_collision: CollisionPolicy = CollisionPolicy.FAIL


@dataclass
class LoggingConfig:
    """Конфигурация логирования."""
    level: str = "INFO"
    log_file: Path = Path("logs/archiver.log")
    max_log_size: int = 10
    backup_count: int = 5


@dataclass
class Config:
    """Основная конфигурация приложения."""
    paths: PathsConfig
    archiver: ArchiverConfig = field(default_factory=ArchiverConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Ключи INI-файла по секциям
_SECTION_KEYS = {
    'paths': ('source', 'destination'),
    'archiver': (
        'group_by', 'previous_period_only', 'older_than', 'file_date_types',
        'ignored_paths', 'min_depth', 'max_depth', 'follow_symbolic_links',
        'keep_empty_folders', 'dry_run', 'on_collision',
    ),
    'logging': ('level', 'log_file', 'max_log_size', 'backup_count'),
}

_DATE_TYPE_ALIASES = {
    'c': TimestampKind.CREATED,
    'created': TimestampKind.CREATED,
    'm': TimestampKind.MODIFIED,
    'modified': TimestampKind.MODIFIED,
    'a': TimestampKind.ACCESSED,
    'accessed': TimestampKind.ACCESSED,
}

# Единицы длительности в секундах, как в humantime: "m" - минуты, "M" - месяцы
_DURATION_UNITS = {
    's': 1, 'sec': 1, 'secs': 1, 'second': 1, 'seconds': 1,
    'm': 60, 'min': 60, 'mins': 60, 'minute': 60, 'minutes': 60,
    'h': 3600, 'hr': 3600, 'hrs': 3600, 'hour': 3600, 'hours': 3600,
    'd': 86400, 'day': 86400, 'days': 86400,
    'w': 604800, 'week': 604800, 'weeks': 604800,
    'M': 2630016, 'month': 2630016, 'months': 2630016,
    'y': 31557600, 'year': 31557600, 'years': 31557600,
}

_DURATION_PART = re.compile(r"(\d+)\s*([A-Za-z]+)")


def parse_bool(value: Union[str, bool, None], default: bool = False) -> bool:
    """Преобразует строковое значение в bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if normalized in ('1', 'true', 'yes', 'on'):
        return True
    if normalized in ('0', 'false', 'no', 'off', ''):
        return False
    raise ConfigurationError(f"Некорректное логическое значение: {value}")


def parse_optional_int(value: Union[str, int, None], name: str) -> Optional[int]:
    """Преобразует значение в неотрицательное целое или None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Параметр {name} должен быть целым числом: {value}")
    if number < 0:
        raise ConfigurationError(f"Параметр {name} не может быть отрицательным: {number}")
    return number


def parse_group_by(value: Union[str, GroupBy, None]) -> Optional[GroupBy]:
    """Преобразует имя стратегии группировки в GroupBy."""
    if value is None or isinstance(value, GroupBy):
        return value
    normalized = value.strip().lower()
    if not normalized or normalized == 'none':
        return None
    try:
        return GroupBy(normalized)
    except ValueError:
        allowed = ", ".join(g.value for g in GroupBy)
        raise ConfigurationError(f"Неизвестная стратегия группировки: {value}. Допустимые значения: {allowed}")


def parse_date_type(value: str) -> TimestampKind:
    """
    Преобразует имя типа временной метки в TimestampKind.

    Поддерживаются полные и короткие формы (created/c, modified/m, accessed/a)
    без учета регистра.
    """
    trimmed = value.strip()
    kind = _DATE_TYPE_ALIASES.get(trimmed.lower())
    if kind is None:
        raise ConfigurationError(
            f"Неподдерживаемый тип временной метки: {trimmed}. "
            f"Используйте одно из значений: created (c), modified (m), accessed (a)"
        )
    return kind


def parse_date_types(value: Union[str, Tuple[TimestampKind, ...], None]) -> Tuple[TimestampKind, ...]:
    """Преобразует список типов временных меток через запятую."""
    if value is None:
        return DEFAULT_DATE_KINDS
    if isinstance(value, tuple):
        return value
    kinds = []
    for part in value.split(','):
        kind = parse_date_type(part)
        if kind not in kinds:
            kinds.append(kind)
    return tuple(kinds)


def parse_paths(value: Union[str, Tuple[Path, ...], None]) -> Tuple[Path, ...]:
    """Преобразует список путей через запятую в абсолютные пути."""
    if value is None:
        return ()
    if isinstance(value, tuple):
        return tuple(Path(p).expanduser().absolute() for p in value)
    return tuple(
        Path(part.strip()).expanduser().absolute()
        for part in value.split(',')
        if part.strip()
    )


def parse_duration(value: str) -> timedelta:
    """
    Разбирает длительность в стиле humantime ("30d", "1y6M", "2h 30min").

    Args:
        value: Строка длительности

    Returns:
        timedelta: Длительность

    Raises:
        ConfigurationError: Если строка не является длительностью
    """
    text = value.strip()
    if not text:
        raise ConfigurationError("Пустая длительность")

    total_seconds = 0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if text[position:match.start()].strip():
            raise ConfigurationError(f"Некорректная длительность: {value}")
        number, unit = match.groups()
        if unit not in _DURATION_UNITS:
            raise ConfigurationError(f"Неизвестная единица длительности '{unit}' в значении: {value}")
        total_seconds += int(number) * _DURATION_UNITS[unit]
        position = match.end()

    if position == 0 or text[position:].strip():
        raise ConfigurationError(f"Некорректная длительность: {value}")
    return timedelta(seconds=total_seconds)


def parse_cutoff(value: Union[str, datetime, None], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Преобразует значение --older-than в момент отсечения.

    Порядок разбора: ISO дата-время (точное локальное время),
    ISO дата (локальная полночь), длительность (now - длительность).

    Args:
        value: Строка вида "2025-01-15T06:30:53", "2025-01-15" или "30d"
        now: Текущий момент для относительных длительностей

    Returns:
        datetime или None: Момент отсечения
    """
    if value is None or isinstance(value, datetime):
        return value
    text = value.strip()
    if not text:
        return None

    try:
        return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        pass

    try:
        return datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        pass

    try:
        duration = parse_duration(text)
    except ConfigurationError:
        raise ConfigurationError(
            "Некорректный формат --older-than. Используйте длительность ('30d', '1y6M'), "
            "ISO дату ('2025-01-15') или ISO дату-время ('2025-01-15T10:30:00')"
        )
    if now is None:
        now = datetime.now()
    return now - duration


def parse_collision_policy(value: Union[str, CollisionPolicy, None]) -> CollisionPolicy:
    """Преобразует имя политики конфликтов назначения."""
    if value is None:
        return CollisionPolicy.FAIL
    if isinstance(value, CollisionPolicy):
        return value
    try:
        return CollisionPolicy(value.strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in CollisionPolicy)
        raise ConfigurationError(f"Неизвестная политика конфликтов: {value}. Допустимые значения: {allowed}")


def build_config(values: Dict[str, Any], now: Optional[datetime] = None) -> Config:
    """
    Собирает и валидирует конфигурацию из плоского словаря значений.

    Значения могут быть строками (из INI-файла) или уже типизированными
    (из командной строки). Отсутствующие ключи получают значения по умолчанию.

    Args:
        values: Словарь значений с ключами секций INI-файла
        now: Текущий момент для относительного --older-than

    Returns:
        Config: Проверенная конфигурация

    Raises:
        ConfigurationError: Если конфигурация некорректна
    """
    source = values.get('source')
    destination = values.get('destination')
    if not source:
        raise ConfigurationError("Не указан исходный каталог (source)")
    if not destination:
        raise ConfigurationError("Не указан каталог назначения (destination)")

    paths = PathsConfig(
        source=Path(source).expanduser().absolute(),
        destination=Path(destination).expanduser().absolute()
    )

    archiver = ArchiverConfig(
        group_by=parse_group_by(values.get('group_by')),
        previous_period_only=parse_bool(values.get('previous_period_only')),
        older_than=parse_cutoff(values.get('older_than'), now),
        file_date_types=parse_date_types(values.get('file_date_types')),
        ignored_paths=parse_paths(values.get('ignored_paths')),
        min_depth=parse_optional_int(values.get('min_depth'), 'min_depth'),
        max_depth=parse_optional_int(values.get('max_depth'), 'max_depth'),
        follow_symlinks=parse_bool(values.get('follow_symbolic_links')),
        keep_empty_folders=parse_bool(values.get('keep_empty_folders')),
        dry_run=parse_bool(values.get('dry_run')),
        on_collision=parse_collision_policy(values.get('on_collision'))
    )

    # 0 допустимо: без ротации по размеру / без резервных копий
    max_log_size = parse_optional_int(values.get('max_log_size'), 'max_log_size')
    backup_count = parse_optional_int(values.get('backup_count'), 'backup_count')
    logging_config = LoggingConfig(
        level=str(values.get('level') or 'INFO'),
        log_file=Path(values.get('log_file') or 'logs/archiver.log'),
        max_log_size=10 if max_log_size is None else max_log_size,
        backup_count=5 if backup_count is None else backup_count
    )

    config = Config(paths=paths, archiver=archiver, logging=logging_config)
    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    """
    Валидирует конфигурацию до начала обхода файлов.

    Raises:
        ConfigurationError: Если конфигурация некорректна
    """
    if config.paths.source == config.paths.destination:
        raise ConfigurationError("Исходный каталог и каталог назначения не могут совпадать")

    archiver = config.archiver
    if archiver.previous_period_only and archiver.group_by is None:
        raise ConfigurationError("Параметр previous_period_only допустим только вместе с group_by")

    if not archiver.file_date_types:
        raise ConfigurationError("Необходимо указать хотя бы один тип временной метки")

    for name in ('min_depth', 'max_depth'):
        depth = getattr(archiver, name)
        if depth is not None and depth < 0:
            raise ConfigurationError(f"Параметр {name} не может быть отрицательным: {depth}")

    if archiver.min_depth is not None and archiver.max_depth is not None:
        if archiver.min_depth > archiver.max_depth:
            raise ConfigurationError(
                f"Минимальная глубина ({archiver.min_depth}) должна быть не больше "
                f"максимальной ({archiver.max_depth})"
            )

    if config.logging.level.upper() not in VALID_LOG_LEVELS:
        raise ConfigurationError(f"Некорректный уровень логирования: {config.logging.level}")


class ConfigLoader:
    """Класс для загрузки и валидации конфигурации."""

    def __init__(self, config_path: str = "config/settings.ini", now: Optional[datetime] = None):
        """
        Инициализация загрузчика конфигурации.

        Args:
            config_path: Путь к файлу конфигурации
            now: Текущий момент для относительного older_than
        """
        self.config_path = Path(config_path)
        self.now = now
        self._config: Optional[Config] = None
        self._overrides: Dict[str, Any] = {}

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Загружает конфигурацию из файла.

        Args:
            overrides: Значения, имеющие приоритет над файлом (None игнорируются)

        Returns:
            Config: Объект конфигурации

        Raises:
            FileNotFoundError: Если файл конфигурации не найден
            ConfigurationError: Если конфигурация некорректна
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Файл конфигурации не найден: {self.config_path}")

        if overrides is not None:
            self._overrides = dict(overrides)

        config_parser = configparser.ConfigParser()
        try:
            config_parser.read(self.config_path, encoding='utf-8')
        except configparser.Error as e:
            raise ConfigurationError(f"Ошибка загрузки конфигурации: {e}")

        values = self._read_values(config_parser)
        values.update({k: v for k, v in self._overrides.items() if v is not None})

        self._config = build_config(values, self.now)
        return self._config

    def _read_values(self, parser: configparser.ConfigParser) -> Dict[str, str]:
        """Читает известные ключи всех секций в плоский словарь."""
        values = {}
        for section, keys in _SECTION_KEYS.items():
            if not parser.has_section(section):
                continue
            for key in keys:
                if parser.has_option(section, key):
                    values[key] = parser.get(section, key)
        return values

    def get_config(self) -> Config:
        """
        Возвращает загруженную конфигурацию.

        Raises:
            ConfigurationError: Если конфигурация не загружена
        """
        if self._config is None:
            raise ConfigurationError("Конфигурация не загружена. Вызовите load_config() сначала.")
        return self._config

    def reload_config(self) -> Config:
        """Перезагружает конфигурацию из файла с прежними переопределениями."""
        self._config = None
        return self.load_config()


def load_config(config_path: str = "config/settings.ini",
                overrides: Optional[Dict[str, Any]] = None,
                now: Optional[datetime] = None) -> Config:
    """
    Удобная функция для быстрой загрузки конфигурации.

    Args:
        config_path: Путь к файлу конфигурации
        overrides: Значения, имеющие приоритет над файлом
        now: Текущий момент для относительного older_than

    Returns:
        Config: Объект конфигурации
    """
    loader = ConfigLoader(config_path, now=now)
    return loader.load_config(overrides)
