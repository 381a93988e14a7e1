"""
Модуль классификации дат по календарным периодам.

Каждая стратегия группировки задает ключ периода (год, индекс) и формат
метки каталога. Ключ и метка вычисляются из одного и того же года:
ISO-года недели для недель и двухнедельных периодов, календарного года
для остальных стратегий.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, NamedTuple, Tuple, Union


DateLike = Union[date, datetime]


class GroupBy(Enum):
    """Стратегия группировки файлов по периодам."""
    WEEK = "week"
    BIWEEKLY = "biweekly"
    MONTH = "month"
    TRIMESTER = "trimester"
    QUADRIMESTER = "quadrimester"
    SEMESTER = "semester"
    YEAR = "year"


def _validate_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Месяц должен быть в диапазоне 1..12, получено: {month}")


def calculate_semester(month: int) -> int:
    """Номер полугодия (1-2) по месяцу."""
    _validate_month(month)
    return 1 if month <= 6 else 2


def calculate_trimester(month: int) -> int:
    """Номер квартала (1-4) по месяцу."""
    _validate_month(month)
    return (month - 1) // 3 + 1


def calculate_quadrimester(month: int) -> int:
    """Номер четырехмесячного периода (1-3) по месяцу."""
    _validate_month(month)
    return (month - 1) // 4 + 1


def calculate_biweekly(iso_week: int) -> int:
    """
    Номер двухнедельного периода (1-26) по номеру ISO-недели.

    Недели 51, 52 и 53 относятся к периоду 26.
    """
    if not 1 <= iso_week <= 53:
        raise ValueError(f"Номер ISO-недели должен быть в диапазоне 1..53, получено: {iso_week}")
    if iso_week >= 51:
        return 26
    return (iso_week - 1) // 2 + 1


def _week_key(value: DateLike) -> Tuple[int, int]:
    iso_year, iso_week, _ = value.isocalendar()
    return iso_year, iso_week


def _biweekly_key(value: DateLike) -> Tuple[int, int]:
    iso_year, iso_week, _ = value.isocalendar()
    return iso_year, calculate_biweekly(iso_week)


def _month_key(value: DateLike) -> Tuple[int, int]:
    _validate_month(value.month)
    return value.year, value.month


def _trimester_key(value: DateLike) -> Tuple[int, int]:
    return value.year, calculate_trimester(value.month)


def _quadrimester_key(value: DateLike) -> Tuple[int, int]:
    return value.year, calculate_quadrimester(value.month)


def _semester_key(value: DateLike) -> Tuple[int, int]:
    return value.year, calculate_semester(value.month)


def _year_key(value: DateLike) -> Tuple[int, int]:
    return value.year, 0


class _PeriodRule(NamedTuple):
    key: Callable[[DateLike], Tuple[int, int]]
    label: str


# Ключ и формат метки для каждой стратегии хранятся вместе
_PERIOD_RULES: Dict[GroupBy, _PeriodRule] = {
    GroupBy.WEEK: _PeriodRule(_week_key, "{year}-W{index:02d}"),
    GroupBy.BIWEEKLY: _PeriodRule(_biweekly_key, "{year}-BW{index:02d}"),
    GroupBy.MONTH: _PeriodRule(_month_key, "{year}-{index:02d}"),
    GroupBy.TRIMESTER: _PeriodRule(_trimester_key, "{year}-Q{index}"),
    GroupBy.QUADRIMESTER: _PeriodRule(_quadrimester_key, "{year}-QD{index}"),
    GroupBy.SEMESTER: _PeriodRule(_semester_key, "{year}-H{index}"),
    GroupBy.YEAR: _PeriodRule(_year_key, "{year}"),
}


@dataclass(frozen=True)
class Period:
    """
    Календарный период.

    Периоды сравниваются только в пределах одной стратегии группировки:
    сначала по году, затем по индексу внутри года.
    """
    group_by: GroupBy
    year: int
    index: int

    @property
    def label(self) -> str:
        """Имя каталога периода, например "2025-W49" или "2025-Q2"."""
        return _PERIOD_RULES[self.group_by].label.format(year=self.year, index=self.index)

    @property
    def key(self) -> Tuple[int, int]:
        return self.year, self.index

    def _check_comparable(self, other: "Period") -> None:
        if other.group_by is not self.group_by:
            raise TypeError(
                f"Нельзя сравнивать периоды разных типов: {self.group_by.value} и {other.group_by.value}"
            )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        self._check_comparable(other)
        return self.key < other.key

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        self._check_comparable(other)
        return self.key <= other.key

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        self._check_comparable(other)
        return self.key > other.key

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        self._check_comparable(other)
        return self.key >= other.key

    def __str__(self) -> str:
        return self.label


def classify(value: DateLike, group_by: GroupBy) -> Period:
    """
    Определяет период, к которому относится дата.

    Args:
        value: Дата или дата-время
        group_by: Стратегия группировки

    Returns:
        Period: Период с меткой и порядком внутри стратегии
    """
    year, index = _PERIOD_RULES[group_by].key(value)
    return Period(group_by=group_by, year=year, index=index)


def period_label(value: DateLike, group_by: GroupBy) -> str:
    """Метка каталога периода для даты."""
    return classify(value, group_by).label


def is_before_current(value: DateLike, group_by: GroupBy, now: DateLike) -> bool:
    """
    Проверяет, относится ли дата к периоду строго раньше текущего.

    Args:
        value: Проверяемая дата
        group_by: Стратегия группировки
        now: Текущий момент (передается явно)

    Returns:
        bool: True если период даты раньше периода now
    """
    return classify(value, group_by) < classify(now, group_by)
