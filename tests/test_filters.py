"""
Тесты для модуля filters.py
"""

from datetime import datetime
from pathlib import Path

import pytest

from file_archiver.config_loader import ArchiverConfig
from file_archiver.filters import (
    FileFilter,
    is_ignored,
    is_older_than,
    is_previous_period,
    within_depth,
)
from file_archiver.models import FileEntry, SkipReason
from file_archiver.periods import GroupBy
from file_archiver.timestamps import TimestampKind


SOURCE = Path("/src").absolute()
MODIFIED_ONLY = (TimestampKind.MODIFIED,)


def make_entry(relative: str, modified=None) -> FileEntry:
    """Создает запись файла с меткой изменения."""
    relative_path = Path(relative)
    return FileEntry(
        path=SOURCE / relative_path,
        relative_path=relative_path,
        depth=len(relative_path.parts),
        timestamps={TimestampKind.CREATED: None, TimestampKind.MODIFIED: modified},
    )


class TestPredicates:
    """Тесты отдельных проверок."""

    def test_is_ignored_equal_and_descendant(self):
        """Путь игнорируется, если совпадает или вложен."""
        ignored = [SOURCE / "Keep"]

        assert is_ignored(SOURCE / "Keep", ignored)
        assert is_ignored(SOURCE / "Keep" / "a.txt", ignored)
        assert is_ignored(SOURCE / "Keep" / "deep" / "b.txt", ignored)

    def test_is_ignored_compares_components(self):
        """Совпадение префикса строки не считается вложенностью."""
        ignored = [SOURCE / "Keep"]

        assert not is_ignored(SOURCE / "Keeper" / "a.txt", ignored)
        assert not is_ignored(SOURCE / "a.txt", ignored)
        assert not is_ignored(SOURCE / "a.txt", [])

    def test_within_depth(self):
        """Тест границ глубины."""
        assert within_depth(2)
        assert within_depth(2, min_depth=2, max_depth=2)
        assert not within_depth(2, max_depth=1)
        assert not within_depth(1, min_depth=2)

    def test_is_older_than_is_strict(self):
        """Дата, равная отсечению, не считается старше."""
        cutoff = datetime(2025, 3, 1)

        assert is_older_than(datetime(2025, 2, 28, 23, 59, 59), cutoff)
        assert not is_older_than(cutoff, cutoff)
        assert is_older_than(datetime(2030, 1, 1), None)

    def test_is_previous_period_without_grouping(self):
        """Без группировки проверка периода всегда проходит."""
        assert is_previous_period(datetime(2030, 1, 1), None, datetime(2025, 1, 1))


class TestFileFilter:
    """Тесты для класса FileFilter."""

    @pytest.fixture
    def now(self):
        return datetime(2025, 11, 15, 12, 0, 0)

    def test_no_filters_accepts_everything(self, now):
        """Без фильтров принимается любой файл с датой."""
        file_filter = FileFilter(ArchiverConfig(file_date_types=MODIFIED_ONLY))
        decision = file_filter.evaluate(make_entry("a/b/c.txt", datetime(2030, 1, 1)), now)

        assert decision.accepted
        assert decision.reason is None
        assert decision.effective_date == datetime(2030, 1, 1)

    def test_ignore_precedence(self, now):
        """Игнорируемый файл исключается независимо от возраста и периода."""
        config = ArchiverConfig(
            group_by=GroupBy.MONTH,
            previous_period_only=True,
            older_than=datetime(2025, 11, 1),
            file_date_types=MODIFIED_ONLY,
            ignored_paths=(SOURCE / "Keep",),
        )
        file_filter = FileFilter(config)

        decision = file_filter.evaluate(make_entry("Keep/a.txt", datetime(2020, 1, 1)), now)

        assert not decision.accepted
        assert decision.reason is SkipReason.IGNORED

    def test_ignore_is_checked_before_date(self, now):
        """Игнорируемый файл без даты пропускается как игнорируемый."""
        config = ArchiverConfig(file_date_types=MODIFIED_ONLY, ignored_paths=(SOURCE / "Keep",))

        decision = FileFilter(config).evaluate(make_entry("Keep/a.txt"), now)

        assert decision.reason is SkipReason.IGNORED

    @pytest.mark.parametrize("max_depth, accepted", [(1, False), (2, True), (None, True)])
    def test_depth(self, now, max_depth, accepted):
        """Файл на глубине 2 исключается при max_depth=1."""
        config = ArchiverConfig(file_date_types=MODIFIED_ONLY, max_depth=max_depth)

        decision = FileFilter(config).evaluate(make_entry("folder/a.txt", datetime(2020, 1, 1)), now)

        assert decision.accepted is accepted
        if not accepted:
            assert decision.reason is SkipReason.DEPTH

    def test_min_depth(self, now):
        """Файл в корне исключается при min_depth=2."""
        config = ArchiverConfig(file_date_types=MODIFIED_ONLY, min_depth=2)

        assert not FileFilter(config).should_move(make_entry("a.txt", datetime(2020, 1, 1)), now)
        assert FileFilter(config).should_move(make_entry("x/a.txt", datetime(2020, 1, 1)), now)

    def test_check_location_without_metadata(self):
        """Проверки расположения не требуют временных меток."""
        config = ArchiverConfig(ignored_paths=(SOURCE / "Keep",), max_depth=1)
        file_filter = FileFilter(config)

        assert file_filter.check_location(make_entry("Keep/a.txt")) is SkipReason.IGNORED
        assert file_filter.check_location(make_entry("folder/a.txt")) is SkipReason.DEPTH
        assert file_filter.check_location(make_entry("a.txt")) is None

    def test_unresolved_date_is_skipped(self, now):
        """Файл без запрошенных меток пропускается, а не считается ошибкой."""
        config = ArchiverConfig(file_date_types=(TimestampKind.CREATED,))

        decision = FileFilter(config).evaluate(make_entry("a.txt", datetime(2020, 1, 1)), now)

        assert not decision.accepted
        assert decision.reason is SkipReason.UNRESOLVED_DATE

    def test_month_previous_period_scenario(self, now):
        """Сценарий: месяц, только прошлые периоды, now = 2025-11-15."""
        config = ArchiverConfig(
            group_by=GroupBy.MONTH,
            previous_period_only=True,
            file_date_types=MODIFIED_ONLY,
        )
        file_filter = FileFilter(config)

        assert file_filter.should_move(make_entry("a.txt", datetime(2025, 10, 20)), now)

        current = file_filter.evaluate(make_entry("b.txt", datetime(2025, 11, 1)), now)
        future = file_filter.evaluate(make_entry("c.txt", datetime(2026, 1, 1)), now)
        assert current.reason is SkipReason.CURRENT_OR_FUTURE_PERIOD
        assert future.reason is SkipReason.CURRENT_OR_FUTURE_PERIOD

    def test_older_than_scenario(self, now):
        """Сценарий: отсечение 2025-10-06T10:00:00, граница в одну секунду."""
        config = ArchiverConfig(
            older_than=datetime(2025, 10, 6, 10, 0, 0),
            file_date_types=MODIFIED_ONLY,
        )
        file_filter = FileFilter(config)

        assert file_filter.should_move(make_entry("a.txt", datetime(2025, 10, 6, 9, 59, 59)), now)

        decision = file_filter.evaluate(make_entry("b.txt", datetime(2025, 10, 6, 10, 0, 1)), now)
        assert not decision.accepted
        assert decision.reason is SkipReason.NOT_OLDER_THAN_CUTOFF

    def test_combined_filters(self):
        """Оба фильтра должны пройти одновременно."""
        now = datetime(2025, 6, 15)
        config = ArchiverConfig(
            group_by=GroupBy.MONTH,
            previous_period_only=True,
            older_than=datetime(2025, 5, 15),
            file_date_types=MODIFIED_ONLY,
        )
        file_filter = FileFilter(config)

        assert file_filter.should_move(make_entry("a.txt", datetime(2025, 5, 10)), now)
        assert not file_filter.should_move(make_entry("b.txt", datetime(2025, 5, 20)), now)
        assert not file_filter.should_move(make_entry("c.txt", datetime(2025, 6, 5)), now)

    def test_recency_dominates(self, now):
        """Файл, старый по созданию, но недавно измененный, не проходит отсечение."""
        entry = FileEntry(
            path=SOURCE / "a.txt",
            relative_path=Path("a.txt"),
            depth=1,
            timestamps={
                TimestampKind.CREATED: datetime(2020, 1, 1),
                TimestampKind.MODIFIED: datetime(2025, 11, 10),
            },
        )
        config = ArchiverConfig(older_than=datetime(2025, 1, 1))

        assert not FileFilter(config).should_move(entry, now)
