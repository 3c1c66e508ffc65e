"""Поиск PNG-файлов карт и чтение их размеров.

Порядок обхода задаётся номером в начале имени (`2.PNG` раньше `10.PNG`),
имена без номера идут последними по алфавиту. Нечитаемый каталог
даёт пустой список, а не исключение.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from cardsite.models.image_model import ImageAsset, PathKind

logger = logging.getLogger(__name__)

# Именно эти два варианта, `.Png` не поддерживается
SUPPORTED_FORMATS: Tuple[str, ...] = (".png", ".PNG")

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_ordinal(file_name: str) -> Optional[int]:
    """Число из начала имени файла без расширения: `12.PNG` -> 12, `12a.png` -> 12.

    Для имён без ведущих цифр возвращает `None`.
    """
    match = _LEADING_INT.match(Path(file_name).stem)
    if match is None:
        return None
    return int(match.group(1))


def _sort_key(file_name: str) -> Tuple[int, int, str]:
    # numeric names first, the rest lexically
    ordinal = parse_ordinal(file_name)
    if ordinal is None:
        return (1, 0, file_name)
    return (0, ordinal, file_name)


def is_supported(path: str | Path) -> bool:
    return Path(path).suffix in SUPPORTED_FORMATS


class ImageService:
    def classify_path(self, path: str | Path) -> PathKind:
        """Определяет, чем является путь: файлом, каталогом или ничем."""
        p = Path(path)
        try:
            if p.is_file():
                return PathKind.FILE
            if p.is_dir():
                return PathKind.DIRECTORY
        except OSError:
            pass
        return PathKind.NOT_FOUND

    def find_images(self, folder: str | Path) -> List[str]:
        """Возвращает имена PNG-файлов каталога, упорядоченные по номеру.

        Args:
            folder: Каталог для поиска.

        Returns:
            Имена файлов (без пути). Файлы с числовым именем идут по возрастанию
            числа, остальные после них в лексическом порядке. Если каталог не
            читается, ошибка логируется и возвращается пустой список.
        """
        try:
            names = [entry.name for entry in Path(folder).iterdir()]
        except OSError as exc:
            logger.error("Ошибка чтения каталога %s: %s", folder, exc)
            return []

        found = [name for name in names if is_supported(name)]
        return sorted(found, key=_sort_key)

    def get_image_info(self, file_path: str | Path) -> Optional[ImageAsset]:
        """Читает размеры и формат изображения без полной декодировки.

        Returns:
            `ImageAsset` или `None`, если файл не читается или не является изображением.
        """
        path = Path(file_path)
        try:
            with Image.open(path) as img:
                width, height = img.size
                fmt = img.format
            size_bytes = path.stat().st_size
        except (OSError, UnidentifiedImageError) as exc:
            logger.error("Ошибка чтения сведений об изображении %s: %s", path, exc)
            return None

        return ImageAsset(
            path=path,
            ordinal=parse_ordinal(path.name),
            width=width,
            height=height,
            format=fmt,
            size_bytes=size_bytes,
        )
