# src/api_client/core/logging/config.py
"""
Конфигурация структурного лога запросов.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def numeric(self) -> int:
        """Уровень stdlib logging (logging.INFO и т.д.)."""
        return logging.getLevelName(self.value)


class LogFormat(str, Enum):
    JSON = "json"  # одна JSON строка на запись, для сборщиков логов CI
    TEXT = "text"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Куда и в каком виде писать события "Request started/completed/failed".

    Args:
        level: Минимальный уровень
        format: json или text
        enable_console: Писать в stdout (раннер тестов перехватывает его)
        enable_file: Писать в файл с ротацией
        file_path: Путь к файлу (обязателен при enable_file=True)
        max_bytes: Размер файла до ротации
        backup_count: Сколько ротированных файлов хранить
        enable_correlation_id: Добавлять X-Correlation-ID текущего вызова
        extra_fields: Статические поля каждой записи (имя набора тестов, номер сборки)

    Example:
        >>> LoggingConfig.create(level="DEBUG", format="json",
        ...                      enable_file=True, file_path="out/api.log")
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    enable_correlation_id: bool = True
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file=True")

    @classmethod
    def create(
        cls,
        level: str = "INFO",
        format: str = "text",
        enable_console: bool = True,
        enable_file: bool = False,
        file_path: Optional[str] = None,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        enable_correlation_id: bool = True,
        extra_fields: Optional[Dict[str, Any]] = None
    ) -> "LoggingConfig":
        """
        Конструктор из строк (регистр не важен).

        Raises:
            ValueError: Неизвестный уровень или формат
        """
        return cls(
            level=LogLevel(level.upper()),
            format=LogFormat(format.lower()),
            enable_console=enable_console,
            enable_file=enable_file,
            file_path=file_path,
            max_bytes=max_bytes,
            backup_count=backup_count,
            enable_correlation_id=enable_correlation_id,
            extra_fields=dict(extra_fields or {}),
        )
