from __future__ import annotations
import logging
from typing import Callable, Mapping, Optional

import requests

from .config import CREATE_DOCUMENT_PATH, ClientConfig
from .errors import ConfigurationError
from .invokers import Invoker, build_invoker, build_post
from .models import Document, DocumentCreatedResponse

logger = logging.getLogger(__name__)

# signature -> extra request headers; the signing scheme is the caller's business
Signer = Callable[[str], Mapping[str, str]]


class CrptApi:
    """
    Client for the CRPT document API.

    One instance is meant to be shared by every thread that talks to the API:
    when `config.rate_limit` is set, all calls through this instance draw from
    the same quota. Call close() (or use it as a context manager) to stop the
    quota timer.
    """
    def __init__(
        self,
        config: ClientConfig,
        *,
        signer: Optional[Signer] = None,
        session: Optional[requests.Session] = None,
    ):
        if config is None:
            raise ConfigurationError("ClientConfig is required")
        if not isinstance(config, ClientConfig):
            raise ConfigurationError(f"Expected ClientConfig, got {type(config).__name__}")
        self.config = config
        self.signer = signer
        self.invoker: Invoker = build_invoker(config, session=session)

    def create_document(self, document: Document, signature: Optional[str] = None) -> DocumentCreatedResponse:
        """
        POST the document to /lk/documents/create and return the decoded response.
        Raises TransportError or DecodeError; API-level failures come back in `.error`.
        """
        headers = None
        if signature is not None:
            if self.signer is not None:
                headers = self.signer(signature)
            else:
                logger.debug("No signer configured, signature not sent")
        request = build_post(self.config.base_url, CREATE_DOCUMENT_PATH, document, headers)
        return self.invoker.invoke(request, DocumentCreatedResponse)

    def close(self) -> None:
        self.invoker.close()

    def __enter__(self) -> CrptApi:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
