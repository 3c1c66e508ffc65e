from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from cardsite.models.image_model import LOW_QUALITY, MEDIUM, SMALL, VariantOutcome, VariantSpec

logger = logging.getLogger(__name__)

PALETTE_COLORS = 256


def round_half_up(value: float) -> int:
    """Округление как `Math.round`: 2.5 -> 3 (встроенный `round` даст 2)."""
    return int(math.floor(value + 0.5))


def target_size(width: int, height: int, divisor: Optional[int]) -> Tuple[int, int]:
    """
    Размер варианта: стороны делятся на `divisor` с округлением,
    но никогда не превышают исходные (без увеличения).
    """
    if divisor is None:
        return width, height
    new_w = round_half_up(width / divisor)
    new_h = round_half_up(height / divisor)
    return min(new_w, width), min(new_h, height)


def output_file_name(original_name: str, suffix: str) -> str:
    """`card.PNG` + `md` -> `card_md.PNG`; расширение сохраняется как есть."""
    p = Path(original_name)
    return f"{p.stem}_{suffix}{p.suffix}"


class VariantService:
    # ---------- Вспомогательные функции ----------
    def _normalize_mode(self, image: Image.Image) -> Image.Image:
        """
        Приводит изображение к RGB/RGBA: так работают и Lanczos, и квантование.
        """
        has_alpha = image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info
        target = "RGBA" if has_alpha else "RGB"
        if image.mode == target:
            return image
        return image.convert(target)

    def _to_palette(self, image: Image.Image) -> Image.Image:
        """
        Палитровый PNG (до 256 цветов). Для RGBA подходит только FASTOCTREE.
        """
        return image.quantize(colors=PALETTE_COLORS, method=Image.Quantize.FASTOCTREE)

    # ---------- Генерация варианта ----------
    def create_variant(self, input_path: str | Path, output_path: str | Path, spec: VariantSpec) -> VariantOutcome:
        """
        Создаёт один вариант изображения и записывает его как PNG.
        Любая ошибка чтения/ресайза/записи логируется и возвращается
        как неуспешный `VariantOutcome`, наружу не пробрасывается.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        try:
            with Image.open(input_path) as src:
                src.load()
                source_size = src.size
                new_size = target_size(src.width, src.height, spec.divisor)
                if new_size[0] <= 0 or new_size[1] <= 0:
                    raise ValueError(f"слишком маленькое изображение для уменьшения: {source_size} -> {new_size}")

                image = self._normalize_mode(src)
                if new_size != source_size:
                    image = image.resize(new_size, Image.Resampling.LANCZOS)
                if spec.quality is not None:
                    image = self._to_palette(image)
                image.save(output_path, format="PNG", compress_level=spec.compress_level)

            original_bytes = input_path.stat().st_size
            output_bytes = output_path.stat().st_size
        except Exception as exc:
            logger.error("%s: ошибка преобразования (%s): %s", spec.label, input_path, exc)
            return VariantOutcome(suffix=spec.suffix, output_path=output_path, success=False, error=str(exc))

        logger.info(
            "✓ %s: %s (%dx%d → %dx%d, %.2fMB → %.2fMB)",
            spec.label,
            output_path.name,
            source_size[0],
            source_size[1],
            new_size[0],
            new_size[1],
            original_bytes / (1024 * 1024),
            output_bytes / (1024 * 1024),
        )
        if spec.progressive:
            logger.debug("%s: чересстрочная запись PNG не поддерживается, файл записан без неё", spec.label)
        return VariantOutcome(
            suffix=spec.suffix,
            output_path=output_path,
            success=True,
            source_size=source_size,
            output_size=new_size,
            output_bytes=output_bytes,
        )

    def create_medium_resolution(self, input_path: str | Path, output_path: str | Path) -> VariantOutcome:
        """Вариант `_md`: стороны уменьшены в 3 раза."""
        return self.create_variant(input_path, output_path, MEDIUM)

    def create_small_resolution(self, input_path: str | Path, output_path: str | Path) -> VariantOutcome:
        """Вариант `_sm`: стороны уменьшены в 10 раз."""
        return self.create_variant(input_path, output_path, SMALL)

    def create_low_quality_version(self, input_path: str | Path, output_path: str | Path) -> VariantOutcome:
        """Вариант `_low`: размер сохраняется, только более сильное сжатие."""
        return self.create_variant(input_path, output_path, LOW_QUALITY)
