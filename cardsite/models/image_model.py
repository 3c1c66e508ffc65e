"""Модели конвертера карт и статического сервера.

Здесь же живёт фиксированная таблица вариантов: `_md` (1/3), `_sm` (1/10)
и отключённый `_low`. Итоги по варианту, файлу и пакету только читаются
после создания.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


class PathKind(enum.Enum):
    """Результат классификации входного пути."""
    FILE = "file"
    DIRECTORY = "directory"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ImageAsset:
    """Неизменяемая модель исходного изображения и его метаданные.

    Fields:
        path: Путь к файлу.
        ordinal: Число из начала имени файла (`12.PNG` -> 12), если есть.
        width: Ширина, px.
        height: Высота, px.
        format: Формат PIL, например "PNG".
        size_bytes: Размер файла.
    """
    path: Path
    ordinal: Optional[int]
    width: int
    height: int
    format: Optional[str]
    size_bytes: int

    @property
    def size_mb(self) -> str:
        return f"{self.size_bytes / (1024 * 1024):.2f}"


@dataclass(frozen=True)
class VariantSpec:
    """Описание одного производного варианта изображения.

    Fields:
        suffix: Суффикс имени файла (`md` -> `1_md.PNG`).
        label: Подпись для логов.
        divisor: Во сколько раз уменьшить стороны; `None` сохраняет размер.
        quality: Качество палитры PNG; `None` отключает квантование.
        compress_level: Уровень zlib-сжатия 0..9.
        progressive: Чересстрочная запись; Pillow её не пишет, флаг только логируется.
    """
    suffix: str
    label: str
    divisor: Optional[int]
    quality: Optional[int]
    compress_level: int
    progressive: bool = False


MEDIUM = VariantSpec(suffix="md", label="Medium res", divisor=3, quality=85, compress_level=6)
SMALL = VariantSpec(suffix="sm", label="Small res", divisor=10, quality=90, compress_level=6)
LOW_QUALITY = VariantSpec(
    suffix="low", label="Low quality", divisor=None, quality=70, compress_level=9, progressive=True
)

# low отключён из-за объёма результата
ENABLED_VARIANTS: Tuple[VariantSpec, ...] = (MEDIUM, SMALL)


@dataclass(frozen=True)
class VariantOutcome:
    """Итог генерации одного варианта."""
    suffix: str
    output_path: Path
    success: bool
    source_size: Optional[Tuple[int, int]] = None
    output_size: Optional[Tuple[int, int]] = None
    output_bytes: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ConversionResult:
    """Сводка по одному исходному файлу: успех только если все варианты успешны."""
    source_path: Path
    outcomes: Tuple[VariantOutcome, ...]

    @property
    def success(self) -> bool:
        return bool(self.outcomes) and all(o.success for o in self.outcomes)

    @property
    def failed_suffixes(self) -> Tuple[str, ...]:
        return tuple(o.suffix for o in self.outcomes if not o.success)


@dataclass(frozen=True)
class BatchSummary:
    total: int
    succeeded: int

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


@dataclass(frozen=True)
class ServedFile:
    """Файл, отданный сервером на один запрос.

    Fields:
        request_path: Путь из URL после подстановки `/index.html`.
        fs_path: Разрешённый путь внутри корня документов.
        content: Байты файла.
        content_type: MIME-тип по расширению.
    """
    request_path: str
    fs_path: Path
    content: bytes
    content_type: str
