import structlog

from loyalty.logging_config import REQUEST_ID_HEADER, bind_request, clear_request


def test_request_id_is_generated(client):
    res = client.get("/health")
    assert len(res.headers[REQUEST_ID_HEADER]) == 32


def test_request_id_is_echoed(client):
    res = client.get("/health", headers={REQUEST_ID_HEADER: "trace-123"})
    assert res.headers[REQUEST_ID_HEADER] == "trace-123"


def test_request_id_on_error_responses(client):
    res = client.get("/dashboard", headers={REQUEST_ID_HEADER: "trace-401"})
    assert res.status_code == 401
    assert res.headers[REQUEST_ID_HEADER] == "trace-401"


def test_bind_and_clear_request():
    request_id = bind_request("POST", "/logRide")
    assert structlog.contextvars.get_contextvars() == {
        "request_id": request_id,
        "method": "POST",
        "path": "/logRide",
    }

    clear_request()
    assert structlog.contextvars.get_contextvars() == {}
