"""Точки входа: статический сервер и конвертер изображений."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cardsite.app import PortInUseError, StaticSiteApp
from cardsite.config import (
    DEFAULT_DOCUMENT_ROOT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    ConverterConfig,
    ServerConfig,
    configure_logging,
)
from cardsite.controllers.converter_controller import ImageConverter
from cardsite.models.image_model import PathKind
from cardsite.services.image_service import ImageService

logger = logging.getLogger("cardsite.main")

CONVERT_USAGE = """❌ Использование: cardsite-convert <входной путь> [каталог назначения] [--test]
Пример (каталог): cardsite-convert cards output
Пример (один файл): cardsite-convert cards/1.PNG output
Пример (тестовый режим): cardsite-convert cards output --test"""


def parse_serve_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cardsite-serve", description="Статический веб-сервер")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Хост для привязки (по умолчанию: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Порт (по умолчанию: 8080)")
    parser.add_argument(
        "--root",
        type=Path,
        default=DEFAULT_DOCUMENT_ROOT,
        help="Корень документов (по умолчанию: docs)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный лог")
    return parser.parse_args(argv)


def parse_convert_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cardsite-convert",
        description="Создаёт уменьшенные версии PNG (_md: 1/3, _sm: 1/10)",
    )
    parser.add_argument("input_path", nargs="?", type=Path, help="Файл или каталог с PNG")
    parser.add_argument("output_dir", nargs="?", type=Path, help="Каталог назначения")
    parser.add_argument("--test", action="store_true", help="Тестовый режим: первые 3 файла")
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный лог")
    # unknown flags are ignored, not a usage error
    args, ignored = parser.parse_known_args(argv)
    args.ignored = ignored
    return args


def serve(argv: Optional[List[str]] = None) -> int:
    """Запускает сервер; возвращает код выхода процесса."""
    args = parse_serve_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)

    app = StaticSiteApp(ServerConfig(host=args.host, port=args.port, document_root=args.root))
    try:
        app.bind()
    except PortInUseError:
        logger.error("Port %d is already in use. Please try a different port.", args.port)
        return 1
    except OSError as exc:
        logger.error("Server error: %s", exc)
        return 1

    try:
        app.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down the server...")
    finally:
        app.close()
    return 0


def convert(argv: Optional[List[str]] = None) -> int:
    """Запускает конвертер; возвращает код выхода процесса.

    1 - ошибки использования (нет аргументов, нет входного/выходного пути)
    и непредвиденные ошибки; сбои отдельных файлов на код не влияют.
    """
    args = parse_convert_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    if args.ignored:
        logger.warning("Неизвестные аргументы пропущены: %s", " ".join(args.ignored))

    if args.input_path is None:
        for line in CONVERT_USAGE.splitlines():
            logger.error(line)
        return 1

    input_path: Path = args.input_path
    output_dir: Optional[Path] = args.output_dir
    kind = ImageService().classify_path(input_path)

    if kind is PathKind.NOT_FOUND:
        if input_path.exists():
            logger.error("❌ Входной путь не является ни файлом, ни каталогом: %s", input_path)
        else:
            logger.error("❌ Входной путь не найден: %s", input_path)
        return 1

    if output_dir is not None and not output_dir.exists():
        logger.error("❌ Каталог назначения не найден: %s", output_dir)
        return 1

    try:
        if kind is PathKind.FILE:
            logger.info("📄 Режим одного файла")
            converter = ImageConverter(
                ConverterConfig(input_folder=input_path.parent, output_folder=output_dir or input_path.parent)
            )
            if args.test:
                converter.test_single_file(input_path)
            else:
                converter.convert_single_file(input_path)
        else:
            logger.info("📁 Режим каталога")
            if output_dir is None:
                logger.error("❌ В режиме каталога нужен каталог назначения.")
                logger.error("Использование: cardsite-convert <входной каталог> <каталог назначения> [--test]")
                return 1
            logger.info("📁 Входной каталог: %s", input_path)
            logger.info("📁 Каталог назначения: %s", output_dir)
            converter = ImageConverter(ConverterConfig(input_folder=input_path, output_folder=output_dir))
            if args.test:
                converter.test_mode()
            else:
                converter.convert_all_images()
    except Exception as exc:
        logger.error("❌ Ошибка при выполнении: %s", exc)
        return 1
    return 0


def main() -> None:
    raise SystemExit(convert())


if __name__ == "__main__":
    main()
