# src/api_client/core/pipeline.py
"""
Request Execution Pipeline.

Один вызов = одна единица работы:
    1. Отправка с ожиданием только заголовков
    2. Однократное чтение тела в память (с потолком буферизации)
    3. Диагностика: строка в sink для не-2xx, артефакт на диск в режиме
       диагностики
    4. execute: проверка статуса и десериализация
       execute_raw: ответ отдаётся вызывающему коду
    5. Освобождение ответа и запроса на любом пути выхода

Пайплайн не ретраит: любая ошибка поднимается один раз, типизированной.
"""

import logging
import time
import uuid
from contextvars import Token
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Type, TypeVar

import requests

from .config import ApiClientConfig, DiagnosticsConfig
from .decoding import FieldConverters, decode_json
from .diagnostics import (
    DiagnosticsSink,
    LoggingDiagnosticsSink,
    artifact_path,
    describe_fault_chain,
    format_response_headers,
    write_artifact,
)
from .exceptions import (
    DecodeFailure,
    TimeoutFault,
    TransportFault,
    classify_requests_exception,
    classify_status,
)
from .logging import ApiClientLogger, reset_correlation_id, set_correlation_id
from .request import ApiRequest
from .response import CHUNK_SIZE, ApiResponse, read_limited
from .transport import Transport
from ..utils.sanitizer import mask_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

CORRELATION_HEADER = "X-Correlation-ID"

# Нижняя граница таймаута сокета, когда от дедлайна почти ничего не осталось
MIN_SOCKET_TIMEOUT = 0.001


@dataclass
class CallContext:
    """Состояние одного вызова пайплайна."""
    method: str
    url: str
    correlation_id: str
    deadline: float
    started: float
    token: Token

    def remaining(self) -> float:
        """Секунды до дедлайна вызова (отрицательное значение - дедлайн прошёл)."""
        return self.deadline - (time.monotonic() - self.started)

    def deadline_fault(self) -> TimeoutFault:
        return TimeoutFault("Request deadline exceeded", self.url, self.deadline)


def _within_deadline(chunks: Iterable[bytes], call: CallContext) -> Iterator[bytes]:
    for chunk in chunks:
        if call.remaining() <= 0:
            raise call.deadline_fault()
        yield chunk


class _PipelineBase:
    """
    Общая часть синхронного и асинхронного пайплайна: отчётность,
    артефакты, проверка статуса, десериализация.
    """

    def __init__(
        self,
        config: ApiClientConfig,
        diagnostics_sink: Optional[DiagnosticsSink] = None,
        client_logger: Optional[ApiClientLogger] = None,
        diagnostics: Optional[DiagnosticsConfig] = None,
    ):
        self._config = config
        self._sink = diagnostics_sink or LoggingDiagnosticsSink()
        self._logger = client_logger
        self._diagnostics = diagnostics or config.diagnostics

    @property
    def diagnostics_sink(self) -> DiagnosticsSink:
        return self._sink

    @property
    def diagnostics_enabled(self) -> bool:
        return self._diagnostics.enabled

    # ==================== Начало / конец вызова ====================

    def _begin(self, request: ApiRequest, url: str, timeout: Optional[float]) -> CallContext:
        request.ensure_open()

        correlation_id = request.headers.get(CORRELATION_HEADER)
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
            request.headers[CORRELATION_HEADER] = correlation_id

        deadline = timeout if timeout is not None else self._config.timeout.total
        call = CallContext(
            method=request.method,
            url=url,
            correlation_id=correlation_id,
            deadline=deadline,
            started=time.monotonic(),
            token=set_correlation_id(correlation_id),
        )

        if self._logger:
            self._logger.info(
                "Request started",
                method=call.method,
                url=mask_url(url),
                correlation_id=correlation_id,
                timeout=deadline,
            )
        return call

    def _end(self, call: CallContext, request: ApiRequest) -> None:
        request.release()
        reset_correlation_id(call.token)

    def _elapsed_ms(self, call: CallContext) -> float:
        return round((time.monotonic() - call.started) * 1000, 2)

    # ==================== Отчётность ====================

    def _report_completed(self, call: CallContext, response: ApiResponse) -> None:
        if self._logger:
            self._logger.info(
                "Request completed",
                method=call.method,
                url=mask_url(call.url),
                status_code=response.status_code,
                duration_ms=self._elapsed_ms(call),
                response_size=len(response.content),
                correlation_id=call.correlation_id,
            )

    def _report_fault(self, call: CallContext, fault: TransportFault, cause: BaseException) -> None:
        for line in describe_fault_chain(cause):
            self._sink.write_line(line)

        if self._logger:
            self._logger.error(
                "Request failed",
                method=call.method,
                url=mask_url(call.url),
                error_type=type(fault).__name__,
                error=str(fault),
                duration_ms=self._elapsed_ms(call),
                correlation_id=call.correlation_id,
            )

    def _report_status(self, call: CallContext, response: ApiResponse) -> None:
        """Диагностическая строка для не-2xx ответа."""
        self._sink.write_line(
            f"{call.method} {mask_url(call.url)} -> {response.status_code} {response.reason}: {response.text}"
        )
        logger.debug(format_response_headers(response))

    def _ensure_success(self, call: CallContext, response: ApiResponse) -> None:
        """
        Raises:
            NonSuccessStatusError: Статус вне 2xx (тело сохраняется целиком)
        """
        if response.is_success:
            return
        self._report_status(call, response)
        raise classify_status(
            response.status_code,
            body=response.text,
            reason=response.reason,
            url=call.url,
        )

    def _capture(self, call: CallContext, response: ApiResponse) -> None:
        """Сохранить тело ответа как артефакт (только в режиме диагностики)."""
        if not self._diagnostics.enabled or not response.content:
            return

        path = artifact_path(
            self._diagnostics.resolve_dir(),
            call.method,
            call.url,
            response.status_code,
            response.content_type,
        )
        try:
            write_artifact(path, response.content)
        except OSError as exc:
            logger.warning("Failed to save diagnostic artifact %s: %s", path, exc)
            return
        self._sink.record_artifact(path)

    def _decode(
        self,
        call: CallContext,
        response: ApiResponse,
        target_type: Type[T],
        converters: Optional[FieldConverters],
    ) -> T:
        try:
            return decode_json(response.content, target_type, converters, encoding=response.encoding)
        except DecodeFailure as exc:
            self._sink.write_line(f"{call.method} {mask_url(call.url)}: {exc}")
            if self._logger:
                self._logger.error(
                    "Response decode failed",
                    method=call.method,
                    url=mask_url(call.url),
                    status_code=response.status_code,
                    error=str(exc),
                    correlation_id=call.correlation_id,
                )
            raise


class RequestPipeline(_PipelineBase):
    """
    Синхронный пайплайн поверх Transport (requests).

    Example:
        >>> pipeline = RequestPipeline(provision("https://api.example.com"))
        >>> user = pipeline.execute(ApiRequest.get("/users/7"), User)
    """

    def __init__(
        self,
        transport: Transport,
        diagnostics_sink: Optional[DiagnosticsSink] = None,
        client_logger: Optional[ApiClientLogger] = None,
        diagnostics: Optional[DiagnosticsConfig] = None,
    ):
        super().__init__(transport.config, diagnostics_sink, client_logger, diagnostics)
        self._transport = transport

    @property
    def transport(self) -> Transport:
        return self._transport

    def execute(
        self,
        request: ApiRequest,
        target_type: Type[T],
        converters: Optional[FieldConverters] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """
        Выполнить запрос и десериализовать тело ответа.

        Args:
            request: Описание запроса (пайплайн освобождает его)
            target_type: Целевой тип
            converters: Преобразования полей для декодера
            timeout: Дедлайн вызова (сек), иначе таймаут транспорта

        Raises:
            TransportFault: Сеть, таймаут, битый или слишком большой ответ
            NonSuccessStatusError: Статус вне 2xx
            DecodeFailure: Тело не разбирается в target_type
        """
        call = self._begin(request, self._transport.build_url(request.path), timeout)
        try:
            with self._send(request, call) as response:
                self._ensure_success(call, response)
                self._capture(call, response)
                return self._decode(call, response, target_type, converters)
        finally:
            self._end(call, request)

    def execute_raw(self, request: ApiRequest, timeout: Optional[float] = None) -> ApiResponse:
        """
        Выполнить запрос и вернуть материализованный ответ.

        Статус не проверяется. Владельцем ответа становится вызывающий код.

        Raises:
            TransportFault: Сеть, таймаут, битый или слишком большой ответ
        """
        call = self._begin(request, self._transport.build_url(request.path), timeout)
        try:
            response = self._send(request, call)
            try:
                if not response.is_success:
                    self._report_status(call, response)
                self._capture(call, response)
            except BaseException:
                response.close()
                raise
            return response
        finally:
            self._end(call, request)

    def _send(self, request: ApiRequest, call: CallContext) -> ApiResponse:
        """
        Отправка и чтение тела в пределах дедлайна вызова.

        Таймаут сокета не больше остатка дедлайна, сам дедлайн
        проверяется между порциями тела.
        """
        max_size = self._config.security.max_response_size

        try:
            raw = self._transport.send(request, max(call.remaining(), MIN_SOCKET_TIMEOUT))
        except requests.RequestException as exc:
            fault = classify_requests_exception(exc, call.url, call.deadline)
            self._report_fault(call, fault, exc)
            raise fault from exc

        try:
            content = read_limited(
                _within_deadline(raw.iter_content(CHUNK_SIZE), call),
                raw.headers,
                max_size,
                call.url,
            )
        except TransportFault as fault:
            raw.close()
            self._report_fault(call, fault, fault)
            raise
        except requests.RequestException as exc:
            raw.close()
            fault = classify_requests_exception(exc, call.url, call.deadline)
            self._report_fault(call, fault, exc)
            raise fault from exc

        response = ApiResponse.from_requests(raw, content, call.method)
        self._report_completed(call, response)
        return response
