"""
File Archiver Utility

Утилита для переноса файлов в архивное дерево с группировкой по периодам
(неделя, месяц, квартал, год и т.д.) и сохранением структуры каталогов.
"""

__version__ = "1.0.0"
__author__ = "File Archiver Team"
__description__ = "Utility for archiving files into period-based folder trees"
