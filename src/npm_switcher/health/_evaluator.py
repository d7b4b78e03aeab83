"""Retried HTTP health probes.

Each attempt is a single GET on a fresh client with keep-alive disabled,
so no socket is reused across attempts or services. Retries are driven by
tenacity with a fixed delay between attempts.
"""

from __future__ import annotations

import socket
import time
from typing import TYPE_CHECKING, Final, final

import anyio
import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from npm_switcher import __version__
from npm_switcher.exceptions import ProbeError
from npm_switcher.utils import get_null_logger

from ._models import ProbeErrorKind, ProbeResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from structlog.typing import FilteringBoundLogger
    from tenacity import RetryCallState

DEFAULT_TIMEOUT: Final = 10.0
DEFAULT_RETRY_DELAY: Final = 1.0
DEFAULT_ATTEMPTS: Final = 3
MIN_ATTEMPTS: Final = 1
MAX_ATTEMPTS: Final = 10
MAX_REDIRECTS: Final = 5

_DNS_MARKERS: Final = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "name resolution",
)


def clamp_attempts(max_attempts: int | None) -> int:
    """Clamp a configured attempt count into the supported range.

    Examples:
        >>> clamp_attempts(None)
        3
        >>> clamp_attempts(0)
        1
        >>> clamp_attempts(25)
        10
    """
    if max_attempts is None:
        return DEFAULT_ATTEMPTS
    return max(MIN_ATTEMPTS, min(MAX_ATTEMPTS, max_attempts))


def _exception_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def classify_error(exc: BaseException) -> ProbeErrorKind:
    """Map a transport exception to a probe error kind."""
    chain = _exception_chain(exc)

    if any(isinstance(e, httpx.TimeoutException | TimeoutError) for e in chain):
        return ProbeErrorKind.TIMEOUT
    if any(isinstance(e, socket.gaierror) for e in chain):
        return ProbeErrorKind.DNS_NOT_FOUND
    if any(isinstance(e, ConnectionRefusedError) for e in chain):
        return ProbeErrorKind.REFUSED

    text = " ".join(str(e).lower() for e in chain)
    if any(marker in text for marker in _DNS_MARKERS):
        return ProbeErrorKind.DNS_NOT_FOUND
    if "refused" in text:
        return ProbeErrorKind.REFUSED
    return ProbeErrorKind.OTHER


@final
class HealthEvaluator:
    """Performs bounded, retried HTTP health probes.

    The evaluator holds no per-service state and may be shared between
    service monitors.

    Attributes:
        timeout: Per-attempt timeout in seconds.
        retry_delay: Fixed delay between attempts in seconds.
    """

    __slots__ = ("_logger", "_sleep", "_transport", "retry_delay", "timeout")

    def __init__(
        self,
        logger: FilteringBoundLogger | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        """Initialize the evaluator.

        Args:
            logger: Logger for probe events.
            timeout: Per-attempt timeout in seconds.
            retry_delay: Fixed delay between attempts in seconds.
            transport: Optional httpx transport, used by tests to stub the network.
            sleep: Awaitable sleep used between attempts.
        """
        self._logger = (logger or get_null_logger()).bind(component="health")
        self._transport = transport
        self._sleep = sleep
        self.timeout = timeout
        self.retry_delay = retry_delay

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            verify=False,  # noqa: S501
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            limits=httpx.Limits(max_keepalive_connections=0),
            headers={
                "User-Agent": f"npm-switcher/{__version__}",
                "Connection": "close",
            },
            transport=self._transport,
        )

    async def _attempt(self, url: str, attempt: int) -> tuple[float, int]:
        started = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.get(url)
        except (httpx.HTTPError, OSError) as e:
            message = str(e) or type(e).__name__
            raise ProbeError(message, kind=classify_error(e), attempt=attempt) from e

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if not response.is_success:
            msg = f"Unexpected status {response.status_code}"
            raise ProbeError(
                msg,
                kind=ProbeErrorKind.HTTP_STATUS,
                attempt=attempt,
                status_code=response.status_code,
            )
        return elapsed_ms, response.status_code

    async def probe(
        self,
        url: str,
        max_attempts: int | None = DEFAULT_ATTEMPTS,
        *,
        service: str | None = None,
    ) -> ProbeResult:
        """Probe ``url`` until it answers with a 2xx status or attempts run out.

        Args:
            url: The check URL.
            max_attempts: Attempt bound, clamped to [1, 10].
            service: Service name bound to log events.

        Returns:
            The final outcome. Failures are reported, never raised.
        """
        attempts_allowed = clamp_attempts(max_attempts)
        logger = self._logger.bind(service=service) if service else self._logger
        attempts = 0

        def _log_retry(retry_state: RetryCallState) -> None:
            outcome = retry_state.outcome
            error = outcome.exception() if outcome is not None else None
            logger.warning(
                "probe attempt failed, retrying",
                url=url,
                attempt=retry_state.attempt_number,
                max_attempts=attempts_allowed,
                error_kind=str(getattr(error, "kind", ProbeErrorKind.OTHER)),
                error=str(error),
                delay=self.retry_delay,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts_allowed),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(ProbeError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts += 1
                    elapsed_ms, status_code = await self._attempt(url, attempts)
        except ProbeError as e:
            logger.warning(
                "probe failed",
                url=url,
                attempts=attempts,
                error_kind=str(e.kind),
                error=str(e),
                status_code=e.status_code,
            )
            return ProbeResult(
                success=False,
                attempts=attempts,
                error_kind=e.kind,
                error=str(e),
                status_code=e.status_code,
            )

        logger.info(
            "probe succeeded",
            url=url,
            attempts=attempts,
            status_code=status_code,
            response_time_ms=round(elapsed_ms, 1),
        )
        return ProbeResult(
            success=True,
            attempts=attempts,
            response_time_ms=elapsed_ms,
            status_code=status_code,
        )
