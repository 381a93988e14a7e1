"""
Тесты для модуля mover.py
"""

import errno
import os
import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock, patch

from file_archiver.logger import FileArchiverLogger
from file_archiver.models import MoveOperation, MoveStatus
from file_archiver.mover import FileMover, get_file_hash


def cross_device_rename(*args, **kwargs):
    raise OSError(errno.EXDEV, "Invalid cross-device link")


class TestFileMover:
    """Тесты для класса FileMover."""

    @pytest.fixture
    def temp_dir(self):
        """Создает временную директорию для тестов."""
        temp_path = tempfile.mkdtemp()
        yield Path(temp_path)
        shutil.rmtree(temp_path, ignore_errors=True)

    @pytest.fixture
    def mock_logger(self):
        """Создает мок логгера."""
        return Mock(spec=FileArchiverLogger)

    @pytest.fixture
    def mover(self, mock_logger):
        return FileMover(mock_logger)

    @pytest.fixture
    def operation(self, temp_dir):
        """Создает исходный файл и операцию перемещения."""
        source = temp_dir / "source" / "docs" / "report.txt"
        source.parent.mkdir(parents=True)
        source.write_text("test content")
        destination = temp_dir / "archive" / "2025-10" / "docs" / "report.txt"
        return MoveOperation(source, destination, "2025-10")

    def test_move_success(self, mover, operation, mock_logger):
        """Тест успешного перемещения с созданием каталогов."""
        outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.MOVED
        assert outcome.destination == operation.destination
        assert not operation.source.exists()
        assert operation.destination.read_text() == "test content"
        mock_logger.log_file_moved.assert_called_once_with(operation.source, operation.destination)

    def test_dry_run_does_not_touch_filesystem(self, mover, operation, mock_logger):
        """Dry run не изменяет файловую систему."""
        outcome = mover.execute(operation, dry_run=True)

        assert outcome.status is MoveStatus.MOVED
        assert operation.source.exists()
        assert not operation.destination.parent.exists()
        mock_logger.log_file_moved.assert_called_once_with(
            operation.source, operation.destination, dry_run=True
        )

    def test_missing_source_is_failure(self, mover, operation, mock_logger):
        """Отсутствующий исходный файл - ошибка, а не исключение."""
        operation.source.unlink()

        outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.FAILED
        assert outcome.reason
        mock_logger.log_file_error.assert_called_once()

    def test_existing_destination_is_not_replaced(self, mover, operation):
        """Без overwrite существующий файл назначения не заменяется."""
        operation.destination.parent.mkdir(parents=True)
        operation.destination.write_text("existing")

        outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.FAILED
        assert operation.source.exists()
        assert operation.destination.read_text() == "existing"

    def test_overwrite(self, mover, operation):
        """С overwrite существующий файл назначения заменяется."""
        operation.destination.parent.mkdir(parents=True)
        operation.destination.write_text("existing")
        overwrite = MoveOperation(operation.source, operation.destination, overwrite=True)

        outcome = mover.execute(overwrite)

        assert outcome.status is MoveStatus.MOVED
        assert not operation.source.exists()
        assert operation.destination.read_text() == "test content"

    def test_cross_device_fallback(self, mover, operation):
        """Между томами файл копируется, проверяется и удаляется из источника."""
        with patch('file_archiver.mover.os.rename', side_effect=cross_device_rename):
            outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.MOVED
        assert not operation.source.exists()
        assert operation.destination.read_text() == "test content"
        assert list(operation.destination.parent.iterdir()) == [operation.destination]

    def test_cross_device_source_removal_failure(self, mover, operation):
        """Если исходный файл не удалился, копия удаляется и дубликата нет."""
        real_unlink = os.unlink

        def failing_unlink(path, *args, **kwargs):
            if Path(path) == operation.source:
                raise PermissionError(errno.EACCES, "Permission denied")
            return real_unlink(path, *args, **kwargs)

        with patch('file_archiver.mover.os.rename', side_effect=cross_device_rename), \
                patch('file_archiver.mover.os.unlink', side_effect=failing_unlink):
            outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.FAILED
        assert operation.source.exists()
        assert not operation.destination.exists()

    def test_cross_device_overwrite_keeps_existing_on_failure(self, mover, operation):
        """При overwrite и неудаче удаления источника прежний файл назначения сохраняется."""
        operation.destination.parent.mkdir(parents=True)
        operation.destination.write_text("existing")
        overwrite = MoveOperation(operation.source, operation.destination, overwrite=True)
        real_replace = os.replace

        def cross_device_replace(src, dst, *args, **kwargs):
            if Path(src) == operation.source:
                raise OSError(errno.EXDEV, "Invalid cross-device link")
            return real_replace(src, dst, *args, **kwargs)

        def failing_unlink(path, *args, **kwargs):
            raise PermissionError(errno.EACCES, "Permission denied")

        with patch('file_archiver.mover.os.replace', side_effect=cross_device_replace), \
                patch('file_archiver.mover.os.unlink', side_effect=failing_unlink):
            outcome = mover.execute(overwrite)

        assert outcome.status is MoveStatus.FAILED
        assert operation.source.read_text() == "test content"
        assert operation.destination.read_text() == "existing"

    def test_cross_device_overwrite(self, mover, operation):
        """Overwrite между томами заменяет файл назначения."""
        operation.destination.parent.mkdir(parents=True)
        operation.destination.write_text("existing")
        overwrite = MoveOperation(operation.source, operation.destination, overwrite=True)
        real_replace = os.replace

        def cross_device_replace(src, dst, *args, **kwargs):
            if Path(src) == operation.source:
                raise OSError(errno.EXDEV, "Invalid cross-device link")
            return real_replace(src, dst, *args, **kwargs)

        with patch('file_archiver.mover.os.replace', side_effect=cross_device_replace):
            outcome = mover.execute(overwrite)

        assert outcome.status is MoveStatus.MOVED
        assert not operation.source.exists()
        assert operation.destination.read_text() == "test content"
        assert list(operation.destination.parent.iterdir()) == [operation.destination]

    def test_cross_device_promote_failure_keeps_copy(self, mover, operation):
        """Если копию не удалось переместить на место, ее содержимое остается на диске."""
        real_replace = os.replace

        def failing_promote(src, dst, *args, **kwargs):
            if Path(dst) == operation.destination:
                raise PermissionError(errno.EACCES, "Permission denied")
            return real_replace(src, dst, *args, **kwargs)

        with patch('file_archiver.mover.os.rename', side_effect=cross_device_rename), \
                patch('file_archiver.mover.os.replace', side_effect=failing_promote):
            outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.FAILED
        leftovers = list(operation.destination.parent.iterdir())
        assert len(leftovers) == 1
        assert leftovers[0].read_text() == "test content"
        assert str(leftovers[0]) in outcome.reason

    def test_cross_device_hash_mismatch(self, mover, operation):
        """Несовпадение хешей - ошибка, временный файл удаляется."""
        with patch('file_archiver.mover.os.rename', side_effect=cross_device_rename), \
                patch('file_archiver.mover.get_file_hash', side_effect=['a', 'b']):
            outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.FAILED
        assert "целостности" in outcome.reason
        assert operation.source.exists()
        assert list(operation.destination.parent.iterdir()) == []

    def test_other_rename_errors_are_not_retried(self, mover, operation):
        """Ошибки, отличные от EXDEV, не приводят к копированию."""
        error = OSError(errno.EACCES, "Permission denied")
        with patch('file_archiver.mover.os.rename', side_effect=error), \
                patch('file_archiver.mover.shutil.copy2') as mock_copy:
            outcome = mover.execute(operation)

        assert outcome.status is MoveStatus.FAILED
        mock_copy.assert_not_called()


class TestGetFileHash:
    """Тесты вычисления хеша файла."""

    @pytest.fixture
    def temp_file(self):
        temp_path = tempfile.mkdtemp()
        test_file = Path(temp_path) / "hash.txt"
        test_file.write_text("test content")
        yield test_file
        shutil.rmtree(temp_path, ignore_errors=True)

    def test_md5(self, temp_file):
        assert get_file_hash(temp_file) == "9473fdd0d880a43c21b7778d34872157"

    def test_algorithms(self, temp_file):
        """Тест разных алгоритмов."""
        assert len(get_file_hash(temp_file, 'sha1')) == 40
        assert len(get_file_hash(temp_file, 'sha256')) == 64

    def test_unsupported_algorithm(self, temp_file):
        with pytest.raises(ValueError):
            get_file_hash(temp_file, 'crc32')
