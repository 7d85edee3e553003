from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Type, TypeVar

import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential
from urllib3.exceptions import NewConnectionError

from .config import JSON_CONTENT_TYPE, ClientConfig
from .errors import ClientClosedError, TransportError
from .rate_limiter import QuotaTracker
from .serialization import dumps, loads

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class InvocationRequest:
    method: str
    url: str
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)


def build_post(base_url: str, path: str, body: Any, headers: Optional[Mapping[str, str]] = None) -> InvocationRequest:
    merged = {"Content-Type": JSON_CONTENT_TYPE}
    if headers:
        merged.update(headers)
    return InvocationRequest(method="POST", url=base_url.rstrip("/") + path, body=dumps(body), headers=merged)


class Invoker(Protocol):
    def invoke(self, request: InvocationRequest, response_type: Type[T]) -> T: ...
    def close(self) -> None: ...


def is_connect_failure(exc: BaseException) -> bool:
    """
    True only when the connection was never established, so the POST never left.
    Aborted/reset connections and TLS failures may have delivered the body: not retried.
    """
    if isinstance(exc, requests.ConnectTimeout):
        return True
    if not isinstance(exc, requests.ConnectionError) or isinstance(exc, requests.exceptions.SSLError):
        return False
    # requests wraps urllib3's MaxRetryError(reason=NewConnectionError) in args[0]
    seen = set()
    stack = [*exc.args, exc.__cause__, exc.__context__]
    while stack:
        e = stack.pop()
        if not isinstance(e, BaseException) or id(e) in seen:
            continue
        seen.add(id(e))
        if isinstance(e, NewConnectionError):
            return True
        stack.extend([getattr(e, "reason", None), e.__cause__, e.__context__])
    return False


# ---------- Plain HTTP ----------
class HttpInvoker:
    """
    One synchronous POST per call: send, buffer the whole body, decode.
    Failures to connect are retried at the transport level (tenacity);
    everything else surfaces as TransportError / DecodeError.
    """
    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self.timeout = config.timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self._retrying = Retrying(
            stop=stop_after_attempt(config.connect_retries),
            wait=wait_exponential(multiplier=0.2, min=0.2, max=5),
            retry=retry_if_exception(is_connect_failure),
            reraise=True,
        )

    def _send(self, request: InvocationRequest) -> requests.Response:
        return self.session.request(
            request.method,
            request.url,
            data=request.body,
            headers=dict(request.headers),
            timeout=self.timeout,
        )

    def invoke(self, request: InvocationRequest, response_type: Type[T]) -> T:
        logger.info("Performing request: %s %s (%d bytes)", request.method, request.url, len(request.body))
        try:
            # copy(): Retrying keeps per-call state, callers run on many threads
            response = self._retrying.copy()(self._send, request)
            raw = response.content
        except requests.RequestException as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}", url=request.url) from e

        logger.info("Retrieved response [%s]: %s", response.status_code, raw.decode("utf-8", errors="replace"))
        if not response.ok:
            logger.warning("%s %s returned HTTP %s", request.method, request.url, response.status_code)
        return loads(raw, response_type, status_code=response.status_code)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()


# ---------- Quota-gated ----------
class RateLimitedInvoker:
    """
    Waits for a QuotaTracker permit, then hands the call to `delegate`.
    Owns the tracker's reset timer: started here, stopped by close().
    """
    def __init__(self, delegate: Invoker, tracker: QuotaTracker):
        self.delegate = delegate
        self.tracker = tracker
        self.tracker.start()

    def invoke(self, request: InvocationRequest, response_type: Type[T]) -> T:
        if not self.tracker.acquire():
            raise ClientClosedError(f"{request.method} {request.url}: rate-limited client is closed")
        return self.delegate.invoke(request, response_type)

    def close(self) -> None:
        self.tracker.stop()
        self.delegate.close()


def build_invoker(config: ClientConfig, session: Optional[requests.Session] = None) -> Invoker:
    http = HttpInvoker(config, session=session)
    if config.rate_limit is None:
        return http
    return RateLimitedInvoker(http, QuotaTracker(config.rate_limit))
