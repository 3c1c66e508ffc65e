"""Конфигурация процессов и настройка логирования.

Значения задаются только аргументами командной строки при старте процесса.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_DOCUMENT_ROOT = Path("docs")
DEFAULT_TEST_LIMIT = 3

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    document_root: Path = DEFAULT_DOCUMENT_ROOT


@dataclass(frozen=True)
class ConverterConfig:
    """Параметры конвертера.

    Fields:
        input_folder: Папка с исходниками (для режима каталога).
        output_folder: Папка назначения; `None` - писать рядом с исходником.
        test_limit: Сколько файлов обрабатывать в тестовом режиме.
    """
    input_folder: Path
    output_folder: Optional[Path] = None
    test_limit: int = DEFAULT_TEST_LIMIT


def configure_logging(verbose: bool = False) -> None:
    """Настраивает корневой логгер пакета: один обработчик в stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    logger = logging.getLogger("cardsite")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    # Prevent duplicate logs
    logger.propagate = False
