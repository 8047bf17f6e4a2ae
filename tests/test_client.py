import asyncio

import pytest

from conftest import API, FakeResponse, FakeSession, connection_error, ok
from pass_predictor.client import PredictionClient, error_message
from pass_predictor.errors import NetworkError, ServiceError
from pass_predictor.record import default_record


def test_success_builds_result():
    session = FakeSession(post=[ok({"prediction": 1, "pass_probability": 0.83, "model": "v3"})])
    record = default_record()

    result = asyncio.run(PredictionClient(API, session=session).submit(record))

    assert result.prediction == 1
    assert result.pass_probability == 0.83
    assert result.result_raw == {"prediction": 1, "pass_probability": 0.83, "model": "v3"}
    assert result.input == record
    assert result.at.endswith("Z")


def test_request_wraps_record_in_envelope():
    session = FakeSession(post=[ok({"prediction": 0})])
    record = {**default_record(), "extra": "x"}

    PredictionClient(API + "/", session=session, timeout=3).predict(record)

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", f"{API}/predict")
    assert kwargs["json"] == {"data": record}
    assert kwargs["timeout"] == 3


def test_result_input_is_a_copy():
    session = FakeSession(post=[ok({"prediction": 1})])
    record = default_record()
    result = PredictionClient(API, session=session).predict(record)

    record["age"] = 99
    assert result.input["age"] == 18


def test_missing_fields_are_kept_absent():
    result = PredictionClient(API, session=FakeSession(post=[ok({})])).predict(default_record())
    assert result.prediction is None
    assert result.pass_probability is None


def test_unparseable_success_body():
    session = FakeSession(post=[FakeResponse(200, text="<html>")])
    result = PredictionClient(API, session=session).predict(default_record())
    assert result.result_raw == {}
    assert result.prediction is None


def test_error_uses_detail():
    session = FakeSession(post=[FakeResponse(422, {"detail": "age must be a number"})])
    with pytest.raises(ServiceError) as err:
        PredictionClient(API, session=session).predict(default_record())
    assert str(err.value) == "age must be a number"
    assert err.value.status_code == 422


def test_error_without_detail_uses_body():
    session = FakeSession(post=[FakeResponse(500, {"error": "boom"})])
    with pytest.raises(ServiceError) as err:
        PredictionClient(API, session=session).predict(default_record())
    assert str(err.value) == '{"error": "boom"}'


def test_error_with_unparseable_body():
    session = FakeSession(post=[FakeResponse(502, text="Bad Gateway")])
    with pytest.raises(ServiceError) as err:
        PredictionClient(API, session=session).predict(default_record())
    assert str(err.value) == "{}"
    assert err.value.body == {}


def test_network_failure():
    session = FakeSession(post=[connection_error()])
    with pytest.raises(NetworkError) as err:
        asyncio.run(PredictionClient(API, session=session).submit(default_record()))
    assert "connection refused" in str(err.value)


@pytest.mark.parametrize(
    "body, message",
    [
        ({"detail": "bad"}, "bad"),
        ({"detail": ""}, '{"detail": ""}'),
        ({"detail": [{"loc": ["age"]}]}, '[{"loc": ["age"]}]'),
        ([1, 2], "[1, 2]"),
    ],
)
def test_error_message(body, message):
    assert error_message(body) == message


def test_urls():
    client = PredictionClient(API + "/", session=FakeSession())
    assert client.predict_url == f"{API}/predict"
    assert client.docs_url == f"{API}/docs"


@pytest.mark.parametrize("status", [300, 302, 304])
def test_redirect_status_is_a_failure(status):
    session = FakeSession(post=[FakeResponse(status, {"detail": "moved"})])
    with pytest.raises(ServiceError) as err:
        PredictionClient(API, session=session).predict(default_record())
    assert err.value.status_code == status
    assert str(err.value) == "moved"


def test_non_finite_literals_in_body_count_as_unparseable():
    session = FakeSession(post=[FakeResponse(200, text='{"prediction": 1, "pass_probability": NaN}')])
    result = PredictionClient(API, session=session).predict(default_record())
    assert result.result_raw == {}
    assert result.pass_probability is None
