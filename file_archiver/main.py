"""
Главный модуль CLI интерфейса для утилиты архивации файлов.

Предоставляет командный интерфейс для архивации файлов, предварительного
просмотра и проверки меток периодов.
"""

import argparse
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from .archiver import ArchiveError, ArchiveReport, SourceRootError, create_archiver
from .config_loader import Config, ConfigurationError, build_config, load_config
from .logger import FileArchiverLogger
from .models import CollisionPolicy
from .periods import GroupBy, classify, is_before_current


EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2
EXIT_ENVIRONMENT_ERROR = 3
EXIT_INTERRUPTED = 130

# Имена атрибутов argparse, которые переносятся в конфигурацию
_OVERRIDE_KEYS = (
    'source', 'destination', 'group_by', 'previous_period_only', 'older_than',
    'file_date_types', 'ignored_paths', 'min_depth', 'max_depth',
    'follow_symbolic_links', 'keep_empty_folders', 'dry_run', 'on_collision',
    'log_file', 'level',
)

MAX_REPORTED_FAILURES = 10


class FileArchiverCLI:
    """Класс для обработки команд CLI."""

    def __init__(self):
        self.config: Optional[Config] = None
        self.logger: Optional[FileArchiverLogger] = None
        self.archiver = None

    def setup(self, args, now: Optional[datetime] = None) -> bool:
        """
        Инициализирует CLI с конфигурацией.

        Args:
            args: Аргументы командной строки
            now: Текущий момент для относительного --older-than

        Returns:
            bool: True если инициализация успешна
        """
        overrides = collect_overrides(args)
        try:
            if args.config:
                self.config = load_config(args.config, overrides, now=now)
            else:
                self.config = build_config(overrides, now=now)
        except (ConfigurationError, FileNotFoundError) as e:
            print(f"❌ Ошибка конфигурации: {e}")
            return False

        self.logger = FileArchiverLogger(self.config.logging)
        if args.config:
            self.logger.log_config_loaded(args.config)

        self.archiver = create_archiver(self.config, self.logger)
        return True

    def cmd_archive(self, args) -> int:
        """
        Команда архивации (и предварительного просмотра).

        Args:
            args: Аргументы командной строки

        Returns:
            int: Код возврата
        """
        try:
            report = self.archiver.run()
        except SourceRootError as e:
            self.logger.log_critical_error("Исходный каталог недоступен", e)
            print(f"❌ {e}")
            return EXIT_ENVIRONMENT_ERROR
        except ArchiveError as e:
            self.logger.log_critical_error("Ошибка архивации", e)
            print(f"❌ {e}")
            return EXIT_ENVIRONMENT_ERROR

        print_report(report)
        return EXIT_FAILURES if report.has_failures() else EXIT_OK


def cmd_period(args) -> int:
    """
    Команда вывода метки периода для даты.

    Args:
        args: Аргументы командной строки

    Returns:
        int: Код возврата
    """
    now = datetime.now()
    try:
        value = datetime.strptime(args.date, "%Y-%m-%d") if args.date else now
    except ValueError:
        print("❌ Ошибка формата даты. Используйте формат YYYY-MM-DD")
        return EXIT_CONFIG_ERROR

    group_by = GroupBy(args.group_by)
    period = classify(value, group_by)
    print(period.label)
    if is_before_current(value, group_by, now):
        print(f"   • Раньше текущего периода ({classify(now, group_by).label})")
    else:
        print(f"   • Текущий или будущий период")
    return EXIT_OK


def collect_overrides(args) -> Dict[str, Any]:
    """Собирает значения аргументов, заданные пользователем."""
    overrides = {}
    for key in _OVERRIDE_KEYS:
        value = getattr(args, key, None)
        # store_true по умолчанию False - не перекрываем значение из файла
        if value is None or value is False:
            continue
        overrides[key] = value
    if getattr(args, 'verbose', False):
        overrides['level'] = 'DEBUG'
    if getattr(args, 'command', None) == 'preview':
        overrides['dry_run'] = True
    return overrides


def print_report(report: ArchiveReport) -> None:
    """Выводит итог запуска."""
    title = "DRY RUN: предварительный просмотр" if report.dry_run else "Архивация завершена"
    print(f"\n✅ {title}")
    print(f"📊 Статистика:")
    print(f"   • {'Будет перемещено' if report.dry_run else 'Перемещено'}: {len(report.moved)}")
    print(f"   • Пропущено: {len(report.skipped)}")
    print(f"   • Ошибок: {len(report.failed)}")
    print(f"   • Удалено пустых каталогов: {len(report.removed_directories)}")
    duration = report.get_duration()
    if duration is not None:
        print(f"   • Продолжительность: {duration:.2f} сек")

    if report.dry_run and report.moved:
        print(f"\n📝 План перемещений:")
        for outcome in report.moved:
            print(f"   • {outcome.source}\n       ↳ {outcome.destination}")

    if report.failed:
        print(f"\n⚠️ Обнаружено {len(report.failed)} ошибок:")
        for outcome in report.failed[:MAX_REPORTED_FAILURES]:
            print(f"   • {outcome.source}: {outcome.reason}")
        if len(report.failed) > MAX_REPORTED_FAILURES:
            print(f"   ... и еще {len(report.failed) - MAX_REPORTED_FAILURES} ошибок")

    for outcome in report.cleanup_errors:
        print(f"   • Не удалось удалить каталог {outcome.path}: {outcome.error}")


def _add_run_arguments(parser: argparse.ArgumentParser) -> None:
    """Аргументы команд archive и preview."""
    parser.add_argument('--source', '-s', help='Исходный каталог с файлами')
    parser.add_argument('--destination', '-d', help='Каталог назначения')
    parser.add_argument(
        '--group-by', '-g',
        choices=[g.value for g in GroupBy],
        help='Стратегия группировки по периодам'
    )
    parser.add_argument(
        '--previous-period-only',
        action='store_true',
        help='Перемещать только файлы прошлых периодов (требует --group-by)'
    )
    parser.add_argument(
        '--older-than',
        help='Только файлы старше длительности или даты ("30d", "1y6M", "2025-01-15", "2025-01-15T06:30:53")'
    )
    parser.add_argument(
        '--file-date-types',
        help='Учитываемые временные метки: created, modified, accessed (c, m, a). По умолчанию: created,modified'
    )
    parser.add_argument('--ignored-paths', help='Игнорируемые файлы и каталоги через запятую')
    parser.add_argument('--min-depth', type=int, help='Минимальная глубина файлов')
    parser.add_argument('--max-depth', type=int, help='Максимальная глубина файлов')
    parser.add_argument(
        '--keep-empty-folders',
        action='store_true',
        help='Не удалять опустевшие каталоги'
    )
    parser.add_argument(
        '--follow-symbolic-links',
        action='store_true',
        help='Следовать символическим ссылкам при обходе'
    )
    parser.add_argument(
        '--on-collision',
        choices=[p.value for p in CollisionPolicy],
        help='Поведение при существующем файле назначения (по умолчанию: fail)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Создает парсер аргументов командной строки.

    Returns:
        argparse.ArgumentParser: Настроенный парсер
    """
    parser = argparse.ArgumentParser(
        description="Утилита архивации файлов с группировкой по периодам",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры использования:

  # Архивация с группировкой по месяцам
  file-archiver archive -s ~/notes -d ~/archive --group-by month

  # Только файлы прошлых недель
  file-archiver archive -s ~/notes -d ~/archive -g week --previous-period-only

  # Файлы старше 30 дней, без изменений на диске
  file-archiver preview -s ~/notes -d ~/archive --older-than 30d

  # Метка периода для даты
  file-archiver period --group-by week --date 2025-12-29
        """
    )

    # Общие аргументы
    parser.add_argument('--config', help='Путь к INI-файлу конфигурации')
    parser.add_argument('--verbose', '-v', action='store_true', help='Подробный вывод')
    parser.add_argument('--log-file', help='Путь к файлу лога (по умолчанию: logs/archiver.log)')

    subparsers = parser.add_subparsers(dest='command', help='Доступные команды')

    archive_parser = subparsers.add_parser('archive', help='Архивация файлов')
    _add_run_arguments(archive_parser)
    archive_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Показать, что будет перемещено, без изменений на диске'
    )

    preview_parser = subparsers.add_parser('preview', help='Предварительный просмотр (dry run)')
    _add_run_arguments(preview_parser)

    period_parser = subparsers.add_parser('period', help='Метка периода для даты')
    period_parser.add_argument(
        '--group-by', '-g',
        choices=[g.value for g in GroupBy],
        required=True,
        help='Стратегия группировки'
    )
    period_parser.add_argument('--date', help='Дата (формат: YYYY-MM-DD, по умолчанию сегодня)')

    return parser


def main(argv=None):
    """Главная функция CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURES

    if args.command == 'period':
        return cmd_period(args)

    cli = FileArchiverCLI()
    if not cli.setup(args):
        return EXIT_CONFIG_ERROR

    try:
        if args.command in ('archive', 'preview'):
            return cli.cmd_archive(args)
        print(f"❌ Неизвестная команда: {args.command}")
        return EXIT_FAILURES

    except KeyboardInterrupt:
        print("\n⚠️ Операция прервана пользователем")
        return EXIT_INTERRUPTED
    except Exception as e:
        print(f"❌ Неожиданная ошибка: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
