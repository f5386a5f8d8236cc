# src/api_client/core/request.py
"""
Описание запроса (Request Description).

Вызывающий код создаёт ApiRequest и передаёт его пайплайну; пайплайн
становится владельцем и освобождает запрос ровно один раз на любом пути
выхода. Освобождённый запрос повторно отправить нельзя.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .exceptions import RequestReleasedError

_NO_BODY = object()


@dataclass
class ApiRequest:
    """
    Один HTTP вызов.

    Args:
        method: HTTP метод
        path: Путь относительно base_url (или абсолютный URL)
        headers: Заголовки запроса (дополняют дефолтные заголовки транспорта)
        params: Query параметры
        json: Тело, сериализуемое в JSON
        data: Сырое тело (bytes, str или file-like объект)

    Examples:
        >>> ApiRequest("GET", "/users/7")
        >>> ApiRequest.post("/users", json={"name": "x"})
    """

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Mapping[str, Any]] = None
    json: Any = _NO_BODY
    data: Any = None

    _released: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        self.method = self.method.upper()
        self.headers = dict(self.headers)

    # ==================== Фабрики ====================

    @classmethod
    def get(cls, path: str, **kwargs: Any) -> "ApiRequest":
        return cls("GET", path, **kwargs)

    @classmethod
    def post(cls, path: str, **kwargs: Any) -> "ApiRequest":
        return cls("POST", path, **kwargs)

    @classmethod
    def put(cls, path: str, **kwargs: Any) -> "ApiRequest":
        return cls("PUT", path, **kwargs)

    @classmethod
    def patch(cls, path: str, **kwargs: Any) -> "ApiRequest":
        return cls("PATCH", path, **kwargs)

    @classmethod
    def delete(cls, path: str, **kwargs: Any) -> "ApiRequest":
        return cls("DELETE", path, **kwargs)

    # ==================== Жизненный цикл ====================

    @property
    def has_json(self) -> bool:
        return self.json is not _NO_BODY

    @property
    def released(self) -> bool:
        return self._released

    def ensure_open(self) -> None:
        """
        Raises:
            RequestReleasedError: Запрос уже освобождён
        """
        if self._released:
            raise RequestReleasedError(self.method, self.path)

    def release(self) -> None:
        """
        Освободить запрос: закрыть file-like тело и отбросить ссылки на тело.

        Повторный вызов ничего не делает.
        """
        if self._released:
            return

        self._released = True
        body, self.data = self.data, None
        self.json = _NO_BODY

        close = getattr(body, "close", None)
        if callable(close):
            close()

    def send_kwargs(self) -> Dict[str, Any]:
        """Параметры тела и query для requests / httpx."""
        self.ensure_open()
        kwargs: Dict[str, Any] = {}
        if self.params:
            kwargs["params"] = dict(self.params)
        if self.has_json:
            kwargs["json"] = self.json
        elif self.data is not None:
            kwargs["data"] = self.data
        return kwargs

    def __enter__(self) -> "ApiRequest":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
