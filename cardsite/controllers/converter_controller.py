"""Контроллер конвертера: какие файлы обрабатывать и куда писать варианты.

Внутри одного файла все включённые варианты идут параллельно, и ответ
собирается только после завершения каждого из них. Файлы обрабатываются
строго по очереди; сбой файла учитывается в итоге и не прерывает проход.
"""
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from cardsite.config import ConverterConfig
from cardsite.models.image_model import (
    ENABLED_VARIANTS,
    BatchSummary,
    ConversionResult,
    VariantOutcome,
    VariantSpec,
)
from cardsite.services.image_service import SUPPORTED_FORMATS, ImageService, is_supported
from cardsite.services.variant_service import VariantService, output_file_name

logger = logging.getLogger(__name__)


@dataclass
class ImageConverter:
    """Связывает поиск файлов и генерацию вариантов.

    Ответственности:
    - Разрешение входного/выходного пути для одного файла.
    - Параллельный запуск всех включённых вариантов одного файла с ожиданием каждого.
    - Последовательная обработка набора файлов и подсчёт итогов.
    """
    config: ConverterConfig
    variants: Sequence[VariantSpec] = ENABLED_VARIANTS

    _image_service: ImageService = field(default_factory=ImageService)
    _variant_service: VariantService = field(default_factory=VariantService)

    @property
    def input_folder(self) -> Path:
        return self.config.input_folder

    @property
    def output_folder(self) -> Path:
        return self.config.output_folder or self.config.input_folder

    # ---- Helpers ----
    def _resolve_paths(self, file_name: str | Path) -> Tuple[Path, Path, str]:
        """Возвращает (входной путь, выходной каталог, имя файла).

        Полный путь (абсолютный или с разделителем) берётся как есть; пишем в
        настроенную папку, если она отличается от входной, иначе рядом с файлом.
        Голое имя файла ищется во входной папке.
        """
        name = str(file_name)
        if os.path.isabs(name) or os.sep in name or "/" in name:
            input_path = Path(name)
            if self.config.output_folder is not None and self.config.output_folder != self.config.input_folder:
                output_dir = self.config.output_folder
            else:
                output_dir = input_path.parent
            return input_path, output_dir, input_path.name
        return self.input_folder / name, self.output_folder, name

    def _run_variants(self, input_path: Path, output_dir: Path, base_name: str) -> List[VariantOutcome]:
        # settle-all: every submitted variant runs to completion
        if not self.variants:
            return []
        targets = [(spec, output_dir / output_file_name(base_name, spec.suffix)) for spec in self.variants]
        with ThreadPoolExecutor(max_workers=len(targets)) as executor:
            futures = [
                (spec, output_path, executor.submit(self._variant_service.create_variant, input_path, output_path, spec))
                for spec, output_path in targets
            ]
            wait([future for _spec, _path, future in futures])

        outcomes: List[VariantOutcome] = []
        for spec, output_path, future in futures:
            try:
                outcomes.append(future.result())
            except Exception as exc:
                logger.error("%s: непредвиденная ошибка (%s): %s", spec.label, input_path, exc)
                outcomes.append(
                    VariantOutcome(suffix=spec.suffix, output_path=output_path, success=False, error=str(exc))
                )
        return outcomes

    # ---- Operations ----
    def convert_single_image(self, file_name: str | Path) -> ConversionResult:
        """Создаёт все включённые варианты одного изображения параллельно.

        Args:
            file_name: Имя файла во входной папке или путь к файлу.

        Returns:
            `ConversionResult`; успешен, только если успешны все варианты.
            Сбой одного варианта не прерывает остальные.
        """
        input_path, output_dir, base_name = self._resolve_paths(file_name)
        logger.info("🎨 Processing: %s", base_name)

        info = self._image_service.get_image_info(input_path)
        if info is not None:
            logger.info("   Original: %dx%d, %sMB", info.width, info.height, info.size_mb)

        outcomes = self._run_variants(input_path, output_dir, base_name)
        return ConversionResult(source_path=input_path, outcomes=tuple(outcomes))

    def convert_single_file(self, file_path: str | Path) -> Optional[ConversionResult]:
        """Конвертирует один файл; неподдерживаемое расширение только логируется."""
        file_path = Path(file_path)
        logger.info("🚀 Конвертер изображений карт (один файл)")
        logger.info("📁 Входной файл: %s", file_path)
        logger.info("📁 Выходной каталог: %s", self.config.output_folder or file_path.parent)

        if not self._check_supported(file_path):
            return None

        labels = ", ".join(f"_{spec.suffix} (1/{spec.divisor})" if spec.divisor else f"_{spec.suffix}" for spec in self.variants)
        logger.info("🎯 Будут созданы версии: %s", labels)

        result = self.convert_single_image(file_path)
        if result.success:
            logger.info("🎉 Конвертация завершена: ✅ %s", file_path.name)
        else:
            logger.error("❌ Конвертация не удалась: %s", file_path.name)
        return result

    def convert_all_images(self) -> BatchSummary:
        """Конвертирует все PNG входной папки по очереди, один файл за раз."""
        logger.info("🚀 Конвертер изображений карт")
        logger.info("📁 Входная папка: %s", self.input_folder)
        logger.info("📁 Выходная папка: %s", self.output_folder)

        files = self._image_service.find_images(self.input_folder)
        if not files:
            logger.warning("❌ PNG-файлы не найдены.")
            return BatchSummary(total=0, succeeded=0)

        logger.info("📸 Найдено PNG-файлов: %d", len(files))
        summary = self._convert_sequence(files, report_progress=True)

        logger.info("🎉 Конвертация завершена! ✅ Успешно: %d/%d", summary.succeeded, summary.total)
        if summary.failed:
            logger.warning("❌ Ошибок: %d/%d", summary.failed, summary.total)
        return summary

    def test_mode(self) -> BatchSummary:
        """Тестовый режим: только первые `test_limit` файлов папки."""
        logger.info("🧪 Тестовый режим (первые %d файла)", self.config.test_limit)

        files = self._image_service.find_images(self.input_folder)[: self.config.test_limit]
        if not files:
            logger.warning("❌ Нет PNG-файлов для теста.")
            return BatchSummary(total=0, succeeded=0)

        logger.info("📸 Тестовые файлы: %s", ", ".join(files))
        summary = self._convert_sequence(files, report_progress=False)
        logger.info("🧪 Тест завершён! Проверьте результат.")
        return summary

    def test_single_file(self, file_path: str | Path) -> Optional[ConversionResult]:
        file_path = Path(file_path)
        logger.info("🧪 Тестовый режим для одного файла: %s", file_path.name)
        if not self._check_supported(file_path):
            return None

        result = self.convert_single_image(file_path)
        if result.success:
            logger.info("🧪 Тест завершён! Проверьте результат.")
        else:
            logger.error("❌ Тест не пройден")
        return result

    def _check_supported(self, file_path: Path) -> bool:
        if is_supported(file_path):
            return True
        logger.error("❌ Неподдерживаемый формат файла: %s", file_path.suffix or "(нет расширения)")
        logger.error("Поддерживаемые форматы: %s", ", ".join(SUPPORTED_FORMATS))
        return False

    def _convert_sequence(self, files: Sequence[str], report_progress: bool) -> BatchSummary:
        succeeded = 0
        for index, file_name in enumerate(files, start=1):
            if report_progress:
                logger.info("⏳ Progress: %d/%d", index, len(files))
            if self.convert_single_image(file_name).success:
                succeeded += 1
        return BatchSummary(total=len(files), succeeded=succeeded)
