"""
Асинхронный API клиент.

Тот же пайплайн, что и у ApiClient, поверх httpx.AsyncClient: отправка и
чтение тела - точки приостановки, много вызовов могут выполняться
конкурентно на одном транспорте.
"""

import asyncio
import warnings
from typing import Optional, Type, TypeVar

import httpx

from .core.api_client import _create_logger
from .core.config import ApiClientConfig, DiagnosticsConfig
from .core.credentials import CredentialStrategy
from .core.decoding import FieldConverters
from .core.diagnostics import DiagnosticsSink
from .core.exceptions import (
    ConfigurationError,
    ResponseTooLargeError,
    classify_httpx_exception,
)
from .core.logging import ApiClientLogger
from .core.pipeline import CallContext, _PipelineBase
from .core.request import ApiRequest
from .core.response import CHUNK_SIZE, ApiResponse, aread_limited
from .core.transport import AsyncTransport, provision_async

T = TypeVar("T")


class AsyncRequestPipeline(_PipelineBase):
    """
    Асинхронный пайплайн поверх AsyncTransport.

    Дедлайн вызова (timeout или таймаут транспорта) покрывает отправку
    и чтение тела целиком.

    Example:
        >>> pipeline = AsyncRequestPipeline(provision_async("https://api.example.com"))
        >>> user = await pipeline.execute(ApiRequest.get("/users/7"), User)
    """

    def __init__(
        self,
        transport: AsyncTransport,
        diagnostics_sink: Optional[DiagnosticsSink] = None,
        client_logger: Optional[ApiClientLogger] = None,
        diagnostics: Optional[DiagnosticsConfig] = None,
    ):
        super().__init__(transport.config, diagnostics_sink, client_logger, diagnostics)
        self._transport = transport

    @property
    def transport(self) -> AsyncTransport:
        return self._transport

    async def execute(
        self,
        request: ApiRequest,
        target_type: Type[T],
        converters: Optional[FieldConverters] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """
        Выполнить запрос и десериализовать тело ответа.

        Raises:
            TransportFault: Сеть, таймаут, битый или слишком большой ответ
            NonSuccessStatusError: Статус вне 2xx
            DecodeFailure: Тело не разбирается в target_type
        """
        call = self._begin(request, self._transport.build_url(request.path), timeout)
        try:
            with await self._send(request, call, timeout) as response:
                self._ensure_success(call, response)
                self._capture(call, response)
                return self._decode(call, response, target_type, converters)
        finally:
            self._end(call, request)

    async def execute_raw(self, request: ApiRequest, timeout: Optional[float] = None) -> ApiResponse:
        """
        Выполнить запрос и вернуть материализованный ответ (статус не проверяется).

        Raises:
            TransportFault: Сеть, таймаут, битый или слишком большой ответ
        """
        call = self._begin(request, self._transport.build_url(request.path), timeout)
        try:
            response = await self._send(request, call, timeout)
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

    async def _exchange(self, request: ApiRequest, call: CallContext, timeout: Optional[float]) -> ApiResponse:
        raw = await self._transport.send(request, timeout)
        try:
            content = await aread_limited(
                raw.aiter_bytes(CHUNK_SIZE),
                raw.headers,
                self._config.security.max_response_size,
                call.url,
            )
        finally:
            await raw.aclose()
        return ApiResponse.from_httpx(raw, content, call.method)

    async def _send(self, request: ApiRequest, call: CallContext, timeout: Optional[float]) -> ApiResponse:
        try:
            response = await asyncio.wait_for(self._exchange(request, call, timeout), call.deadline)
        except asyncio.TimeoutError as exc:
            fault = call.deadline_fault()
            self._report_fault(call, fault, exc)
            raise fault from exc
        except ResponseTooLargeError as fault:
            self._report_fault(call, fault, fault)
            raise
        except httpx.HTTPError as exc:
            fault = classify_httpx_exception(exc, call.url, call.deadline)
            self._report_fault(call, fault, exc)
            raise fault from exc

        self._report_completed(call, response)
        return response


class AsyncApiClient:
    """
    Асинхронный клиент JSON API.

    Example:
        >>> async with AsyncApiClient("https://api.example.com") as client:
        ...     user = await client.execute(ApiRequest.get("/users/7"), User)
        ...     response = await client.execute_raw(ApiRequest.delete("/users/7"))
        ...     assert response.status_code == 204
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        credentials: Optional[CredentialStrategy] = None,
        *,
        config: Optional[ApiClientConfig] = None,
        diagnostics_sink: Optional[DiagnosticsSink] = None,
    ):
        """
        Args:
            base_url: Абсолютный http/https адрес (иначе config.base_url)
            credentials: Стратегия аутентификации (None = DefaultIdentity)
            config: Конфигурация
            diagnostics_sink: Приёмник диагностики

        Raises:
            InvalidAddressError: Невалидный базовый адрес
            ConfigurationError: Адрес не задан или неподдерживаемая схема аутентификации
        """
        config = config or ApiClientConfig()
        address = base_url if base_url is not None else config.base_url
        if address is None:
            raise ConfigurationError("base_url is required (argument or config.base_url)")

        self._config = config
        self._transport = provision_async(address, credentials, config)
        self._logger = _create_logger(config, self._transport.base_url)
        self._pipeline = AsyncRequestPipeline(
            self._transport,
            diagnostics_sink=diagnostics_sink,
            client_logger=self._logger,
        )

    async def execute(
        self,
        request: ApiRequest,
        target_type: Type[T],
        converters: Optional[FieldConverters] = None,
        timeout: Optional[float] = None,
    ) -> T:
        return await self._pipeline.execute(request, target_type, converters=converters, timeout=timeout)

    async def execute_raw(self, request: ApiRequest, timeout: Optional[float] = None) -> ApiResponse:
        return await self._pipeline.execute_raw(request, timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def config(self) -> ApiClientConfig:
        return self._config

    @property
    def transport(self) -> AsyncTransport:
        return self._transport

    @property
    def diagnostics_sink(self) -> DiagnosticsSink:
        return self._pipeline.diagnostics_sink

    @property
    def closed(self) -> bool:
        return self._transport.closed

    async def close(self) -> None:
        """Закрыть httpx клиент и handlers логгера."""
        if self._logger is not None:
            self._logger.close()
        await self._transport.aclose()

    async def __aenter__(self) -> "AsyncApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __del__(self):
        transport = self.__dict__.get("_transport")
        if transport is not None and not transport.closed:
            warnings.warn(
                "AsyncApiClient garbage collected without close(). "
                "Use 'async with AsyncApiClient(...) as client:'.",
                ResourceWarning,
                stacklevel=2
            )
