# src/api_client/core/diagnostics.py
"""
Диагностика пайплайна: лог-линии и артефакты.

Пайплайн пишет строки (статус, тело неуспешного ответа, цепочку
исключений) в DiagnosticsSink и, в режиме диагностики, сохраняет тела
успешных ответов на диск, регистрируя путь в том же sink. Тестовый
раннер может подставить свой sink, чтобы прикреплять файлы к отчёту.
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlsplit

from .response import ApiResponse

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SINK
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DiagnosticsSink(ABC):
    """Приёмник диагностических строк и артефактов."""

    @abstractmethod
    def write_line(self, message: str) -> None:
        """Записать одну диагностическую строку."""

    @abstractmethod
    def record_artifact(self, path: Path) -> None:
        """Зарегистрировать сохранённый файл."""


class LoggingDiagnosticsSink(DiagnosticsSink):
    """
    Sink по умолчанию: строки уходят в logger api_client.diagnostics,
    пути артефактов накапливаются в списке artifacts.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("api_client.diagnostics")
        self.artifacts: List[Path] = []

    def write_line(self, message: str) -> None:
        self.logger.info(message)

    def record_artifact(self, path: Path) -> None:
        self.artifacts.append(path)
        self.logger.info("Artifact saved: %s", path)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# АРТЕФАКТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

# Недопустимые в имени файла символы (объединение Windows и POSIX)
INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_path(path: str, safe_character: str = "_") -> str:
    """
    Превратить путь URI в имя файла.

    Первый символ (ведущий '/') отбрасывается, каждый недопустимый
    символ заменяется на safe_character.

    Examples:
        >>> sanitize_path("/api/users/7")
        'api_users_7'
        >>> sanitize_path("/")
        ''
    """
    return INVALID_FILENAME_CHARS.sub(safe_character, path[1:])


def artifact_path(
    directory: Union[str, Path],
    method: str,
    url: str,
    status_code: int,
    content_type: str = "",
) -> Path:
    """
    Путь артефакта: <METHOD>_<sanitized path>_<status><ext>.

    Расширение .json для JSON ответов, иначе .html. Одинаковые вызовы
    в рамках прогона перезаписывают файл.

    Example:
        >>> artifact_path("/tmp/run", "GET", "https://api.example.com/users/7?x=1", 200, "application/json")
        PosixPath('/tmp/run/GET_users_7_200.json')
    """
    name = sanitize_path(urlsplit(url).path) or "root"
    extension = ".json" if "json" in content_type.lower() else ".html"
    return Path(directory) / f"{method.upper()}_{name}_{status_code}{extension}"


def write_artifact(path: Path, content: bytes) -> Path:
    """
    Записать байты, создав каталоги при необходимости.

    Raises:
        OSError: Ошибка файловой системы
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ФОРМАТИРОВАНИЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def describe_fault_chain(exc: BaseException) -> List[str]:
    """
    Описать исключение и всю цепочку его причин, по строке на уровень.

    Example:
        >>> describe_fault_chain(fault)
        ['HTTP EXCEPTION: TimeoutFault: Request timeout (url: ...)',
         'INNER EXCEPTION: ReadTimeout: HTTPSConnectionPool(...)']
    """
    lines: List[str] = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        prefix = "HTTP EXCEPTION" if not lines else "INNER EXCEPTION"
        lines.append(f"{prefix}: {type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__
    return lines


def format_response_headers(response: ApiResponse) -> str:
    """
    Статусная строка и заголовки ответа.

    Example:
        RESPONSE STATUS: Not Found (404)
        Content-Type: application/json
        Content-Length: 9
    """
    lines = [f"RESPONSE STATUS: {response.reason} ({response.status_code})"]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    return "\n".join(lines)
