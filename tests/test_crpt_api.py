import json
import threading
import time
from datetime import date, timedelta

import pytest
import requests

from crpt_client import invokers
from crpt_client.config import ClientConfig, RateLimit
from crpt_client.crpt_api import CrptApi
from crpt_client.errors import ClientClosedError, ConfigurationError, TransportError
from crpt_client.models import Description, Document, DocumentCreatedResponse


def _doc(doc_id="d-1") -> Document:
    return Document(
        description=Description(participant_inn="7700000000"),
        doc_id=doc_id,
        producer_inn="7711111111",
        production_date=date(2024, 5, 6),
    )


def test_requires_config():
    with pytest.raises(ConfigurationError):
        CrptApi(None)
    with pytest.raises(ConfigurationError):
        CrptApi({"base_url": "https://example.test"})


def test_create_document_posts_to_create_endpoint(fake_session):
    session = fake_session(body=b'{"value":"abc"}')
    api = CrptApi(ClientConfig(base_url="https://example.test/api/v3"), session=session)

    resp = api.create_document(_doc())

    assert isinstance(resp, DocumentCreatedResponse)
    call = session.calls[0]
    assert call["url"] == "https://example.test/api/v3/lk/documents/create"
    assert call["headers"]["Content-Type"] == "application/json"
    assert json.loads(call["data"]) == {
        "description": {"participantInn": "7700000000"},
        "doc_id": "d-1",
        "producer_inn": "7711111111",
        "production_date": "2024-05-06",
    }


def test_response_fields_match_and_unknown_fields_are_ignored(fake_session):
    body = {"value": "abc", "error": {"code": "E1", "message": "dup", "trace": "x"}, "server": "nginx"}
    api = CrptApi(ClientConfig(), session=fake_session(body=json.dumps(body).encode()))

    resp = api.create_document(_doc())

    assert resp.value == "abc"
    assert resp.error.code == "E1"
    assert resp.error.message == "dup"
    assert not resp.ok


def test_connection_error_surfaces_without_decode(fake_session, monkeypatch):
    def no_decode(*a, **kw):
        raise AssertionError("decode attempted")

    monkeypatch.setattr(invokers, "loads", no_decode)
    session = fake_session(exc=requests.ConnectionError("no route"))
    api = CrptApi(ClientConfig(connect_retries=1), session=session)
    with pytest.raises(TransportError):
        api.create_document(_doc())
    assert len(session.calls) == 1


def test_signer_headers_are_sent(fake_session):
    session = fake_session()
    api = CrptApi(ClientConfig(), signer=lambda sig: {"X-Signature": sig.upper()}, session=session)
    api.create_document(_doc(), signature="abc")
    assert session.calls[0]["headers"]["X-Signature"] == "ABC"


def test_signature_without_signer_is_not_sent(fake_session):
    session = fake_session()
    CrptApi(ClientConfig(), session=session).create_document(_doc(), signature="abc")
    assert set(session.calls[0]["headers"]) == {"Content-Type"}


def test_one_call_per_window_for_ten_concurrent_callers(fake_session):
    window = 0.2
    session = fake_session(body=b"{}")
    t0 = time.monotonic()
    api = CrptApi(ClientConfig(rate_limit=RateLimit(timedelta(seconds=window), 1)), session=session)
    try:
        threads = [threading.Thread(target=api.create_document, args=(_doc(str(i)),)) for i in range(10)]
        for t in threads: t.start()
        for t in threads: t.join(timeout=10)
        elapsed = time.monotonic() - t0
    finally:
        api.close()

    assert len(session.calls) == 10
    assert elapsed >= 9 * window


def test_close_stops_quota_timer(fake_session):
    with CrptApi(ClientConfig(rate_limit=RateLimit.per("second", 5)), session=fake_session()) as api:
        assert api.invoker.tracker.running
    assert not api.invoker.tracker.running


def test_numeric_error_code_comes_back_in_error(fake_session):
    session = fake_session(body=b'{"error":{"code":400,"message":"bad"}}', status=400)
    resp = CrptApi(ClientConfig(), session=session).create_document(Document(doc_id="1"))
    assert resp.error.code == "400"
    assert not resp.ok


def test_create_document_after_close_fails_fast(fake_session):
    session = fake_session()
    api = CrptApi(ClientConfig(rate_limit=RateLimit.per("second", 5)), session=session)
    api.close()
    with pytest.raises(ClientClosedError):
        api.create_document(_doc())
    assert session.calls == []
