# src/api_client/core/decoding.py
"""
Десериализация JSON тела в типизированное значение.

Разбор выполняет stdlib json, приведение к типу - pydantic TypeAdapter,
поэтому целевым типом может быть pydantic модель, dataclass, TypedDict,
builtin или typing generic (List[User], Dict[str, int], ...).
"""

import codecs
import json
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from .exceptions import DecodeFailure

T = TypeVar("T")

# Имя поля -> функция преобразования сырого значения
FieldConverters = Mapping[str, Callable[[Any], Any]]


@lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _adapter_for(target: Any) -> TypeAdapter:
    try:
        return _cached_adapter(target)
    except TypeError:
        # Нехешируемый target (например, Annotated с dict метаданными)
        return TypeAdapter(target)


class _ConverterError(Exception):
    """Ошибка конвертера поля внутри json.loads (исходная в __cause__)."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(field)


def _object_hook(converters: FieldConverters) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    def hook(obj: Dict[str, Any]) -> Dict[str, Any]:
        for name, convert in converters.items():
            if name in obj:
                try:
                    obj[name] = convert(obj[name])
                except Exception as exc:
                    raise _ConverterError(name) from exc
        return obj
    return hook


def _decode_text(payload: Union[str, bytes, bytearray], target: Any, encoding: Optional[str]) -> str:
    if isinstance(payload, str):
        return payload

    codec = encoding or "utf-8"
    try:
        codecs.lookup(codec)
    except LookupError:
        # Неизвестная кодировка в Content-Type
        codec = "utf-8"

    try:
        return bytes(payload).decode(codec)
    except UnicodeDecodeError as exc:
        body = bytes(payload).decode(codec, errors="replace")
        raise DecodeFailure(target, body, f"body is not valid {codec}: {exc.reason}") from exc


def decode_json(
    payload: Union[str, bytes],
    target: Type[T],
    converters: Optional[FieldConverters] = None,
    encoding: Optional[str] = None,
) -> T:
    """
    Разобрать JSON и привести к целевому типу.

    Args:
        payload: Текст или байты JSON
        target: Целевой тип
        converters: Преобразования полей, применяются к каждому JSON
                    объекту до валидации
        encoding: Кодировка байтов (charset ответа), по умолчанию UTF-8.
                  Байты, невалидные в этой кодировке - DecodeFailure.

    Returns:
        Значение целевого типа

    Raises:
        DecodeFailure: Невалидная кодировка или JSON, несоответствие типу,
                       ошибка конвертера, неподдерживаемый целевой тип.
                       Исходная ошибка в __cause__.

    Examples:
        >>> class User(BaseModel):
        ...     id: int
        ...     name: str
        >>> decode_json('{"id": 7, "name": "x"}', User)
        User(id=7, name='x')
        >>> decode_json('{"created": "1700000000"}', Dict[str, datetime],
        ...             converters={"created": lambda v: datetime.fromtimestamp(int(v))})
    """
    text = _decode_text(payload, target, encoding)

    hook = _object_hook(converters) if converters else None

    try:
        raw = json.loads(text, object_hook=hook)
    except _ConverterError as exc:
        cause = exc.__cause__
        raise DecodeFailure(
            target, text, f"field converter failed for {exc.field!r}: {type(cause).__name__}: {cause}"
        ) from cause
    except json.JSONDecodeError as exc:
        raise DecodeFailure(target, text, f"invalid JSON: {exc}") from exc
    except RecursionError as exc:
        raise DecodeFailure(target, text, "invalid JSON: nesting too deep") from exc

    try:
        adapter = _adapter_for(target)
    except (PydanticUserError, TypeError) as exc:
        raise DecodeFailure(target, text, f"unsupported target type: {exc}") from exc

    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        raise DecodeFailure(target, text, f"{exc.error_count()} validation error(s)") from exc
