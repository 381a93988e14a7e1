"""
Модуль фильтрации файлов-кандидатов.

Решение о перемещении принимается упорядоченной цепочкой проверок,
которая останавливается на первой непройденной:

1. путь не входит в список игнорируемых;
2. глубина файла в допустимых границах;
3. эффективная дата определена;
4. эффективная дата строго раньше момента отсечения (если задан);
5. период файла раньше текущего (если задан previous_period_only).
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .config_loader import ArchiverConfig
from .models import FileEntry, SkipReason
from .periods import GroupBy, is_before_current
from .timestamps import resolve_effective_date


def is_ignored(path: Path, ignored_paths: Iterable[Path]) -> bool:
    """Путь совпадает с одним из игнорируемых путей или находится внутри него."""
    for ignored in ignored_paths:
        if path == ignored:
            return True
        try:
            path.relative_to(ignored)
        except ValueError:
            continue
        return True
    return False


def within_depth(depth: int, min_depth: Optional[int] = None, max_depth: Optional[int] = None) -> bool:
    """min_depth <= depth <= max_depth, любая из границ может отсутствовать."""
    if min_depth is not None and depth < min_depth:
        return False
    if max_depth is not None and depth > max_depth:
        return False
    return True


def is_older_than(effective_date: datetime, cutoff: Optional[datetime]) -> bool:
    """Дата строго раньше момента отсечения. Без отсечения - всегда True."""
    if cutoff is None:
        return True
    return effective_date < cutoff


def is_previous_period(effective_date: datetime, group_by: Optional[GroupBy], now: datetime) -> bool:
    """Дата относится к периоду раньше текущего. Без группировки - всегда True."""
    if group_by is None:
        return True
    return is_before_current(effective_date, group_by, now)


@dataclass(frozen=True)
class FilterDecision:
    """Результат фильтрации одного файла."""
    accepted: bool
    reason: Optional[SkipReason] = None
    effective_date: Optional[datetime] = None


class FileFilter:
    """Фильтр файлов по правилам архивации."""

    def __init__(self, config: ArchiverConfig):
        self.config = config

    def check_location(self, entry: FileEntry) -> Optional[SkipReason]:
        """Проверки, не требующие метаданных файла: игнорирование и глубина."""
        if is_ignored(entry.path, self.config.ignored_paths):
            return SkipReason.IGNORED
        if not within_depth(entry.depth, self.config.min_depth, self.config.max_depth):
            return SkipReason.DEPTH
        return None

    def evaluate(self, entry: FileEntry, now: datetime) -> FilterDecision:
        """
        Применяет все проверки к файлу.

        Args:
            entry: Найденный файл
            now: Текущий момент

        Returns:
            FilterDecision: Решение с причиной пропуска и эффективной датой
        """
        config = self.config

        location_reason = self.check_location(entry)
        if location_reason is not None:
            return FilterDecision(False, location_reason)

        effective_date = resolve_effective_date(entry.timestamps, config.file_date_types)
        if effective_date is None:
            return FilterDecision(False, SkipReason.UNRESOLVED_DATE)

        if not is_older_than(effective_date, config.older_than):
            return FilterDecision(False, SkipReason.NOT_OLDER_THAN_CUTOFF, effective_date)

        if config.previous_period_only and not is_previous_period(effective_date, config.group_by, now):
            return FilterDecision(False, SkipReason.CURRENT_OR_FUTURE_PERIOD, effective_date)

        return FilterDecision(True, effective_date=effective_date)

    def should_move(self, entry: FileEntry, now: datetime) -> bool:
        return self.evaluate(entry, now).accepted
