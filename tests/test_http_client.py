import httpx
import pytest

from core.http_client import HttpError, fetch_json


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_fetch_json_success():
    client = _client(lambda req: httpx.Response(200, json={"a": 1}))
    assert fetch_json("https://x.test/a.json", client=client) == {"a": 1}


def test_transport_errors_are_retried_with_backoff():
    attempts = []
    sleeps = []

    def handler(request):
        attempts.append(1)
        if len(attempts) < 3:
            raise httpx.ConnectError("boom", request=request)
        return httpx.Response(200, json=["ok"])

    result = fetch_json(
        "https://x.test/a.json",
        client=_client(handler),
        retries=2,
        backoff_factor=0.5,
        sleep=sleeps.append,
    )
    assert result == ["ok"]
    assert sleeps == [0.5, 1.0]


def test_gives_up_after_retries():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(HttpError, match="after 1 retries"):
        fetch_json("https://x.test/a.json", client=_client(handler), retries=1, sleep=lambda s: None)


def test_http_status_is_not_retried():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(503)

    with pytest.raises(HttpError) as exc:
        fetch_json("https://x.test/a.json", client=_client(handler), retries=3, sleep=lambda s: None)
    assert exc.value.status_code == 503
    assert len(calls) == 1


def test_invalid_json_raises():
    client = _client(lambda req: httpx.Response(200, text="<html>"))
    with pytest.raises(HttpError, match="Invalid JSON"):
        fetch_json("https://x.test/a.json", client=client)
