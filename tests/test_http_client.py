from unittest.mock import MagicMock

import pytest
import requests

from allocopt.network.client import GraphQLClient, GraphQLRequestError
from allocopt.services.http import (
    HttpSettings,
    configure_http,
    get_http_session,
    get_http_settings,
    graphql_request,
    http_request,
)


def _session(body=None, *, json_error=None, status_error=None, transport_error=None):
    response = MagicMock()
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    session = MagicMock()
    if transport_error is not None:
        session.request.side_effect = transport_error
    else:
        session.request.return_value = response
    return session


def test_execute_posts_query_and_variables():
    session = _session({"data": {"graphNetwork": {"id": "1"}}})
    client = GraphQLClient("http://network.test/network", session=session, timeout=5)

    data = client.query("query graphNetwork { graphNetwork { id } }", {"id": "1"})

    assert data == {"graphNetwork": {"id": "1"}}
    args, kwargs = session.request.call_args
    assert args == ("POST", "http://network.test/network")
    assert kwargs["json"] == {"query": "query graphNetwork { graphNetwork { id } }", "variables": {"id": "1"}}
    assert kwargs["timeout"] == 5


def test_errors_field_becomes_request_error():
    session = _session({"data": None, "errors": [{"message": "bad field"}, "other"]})
    client = GraphQLClient("http://network.test/network", session=session)
    with pytest.raises(GraphQLRequestError, match="bad field; other") as excinfo:
        client.query("query x { x }")
    assert len(excinfo.value.errors) == 2
    assert excinfo.value.url == "http://network.test/network"


def test_non_json_body_is_rejected():
    client = GraphQLClient("http://network.test", session=_session(json_error=ValueError("no json")))
    with pytest.raises(GraphQLRequestError, match="non-JSON"):
        client.query("query x { x }")


def test_missing_data_is_rejected():
    client = GraphQLClient("http://network.test", session=_session({"data": None}))
    with pytest.raises(GraphQLRequestError, match="no data"):
        client.query("query x { x }")


def test_transport_failures_are_wrapped():
    session = _session(transport_error=requests.ConnectionError("refused"))
    client = GraphQLClient("http://network.test", session=session)
    with pytest.raises(GraphQLRequestError, match="refused"):
        client.mutate("mutation x { x }")


def test_bad_status_is_wrapped():
    session = _session({"data": {}}, status_error=requests.HTTPError("502 Bad Gateway"))
    client = GraphQLClient("http://management.test", session=session)
    with pytest.raises(GraphQLRequestError, match="502"):
        client.mutate("mutation x { x }")


def test_non_http_endpoint_is_refused():
    with pytest.raises(ValueError):
        GraphQLClient("localhost:7600/network")


def test_http_request_logs_and_reraises(caplog):
    session = _session(transport_error=requests.Timeout("slow"))
    with caplog.at_level("WARNING", logger="allocopt.http"):
        with pytest.raises(requests.Timeout):
            http_request("get", "http://network.test", session=session)
    assert "HTTP GET http://network.test failed" in caplog.text


def test_configure_http_rebuilds_the_shared_session():
    previous = get_http_settings()
    try:
        configure_http(HttpSettings(timeout=30.0, connect_timeout=3.0, retries=2, backoff_factor=0.5))
        session = get_http_session()
        adapter = session.get_adapter("http://network.test")
        assert adapter.max_retries.total == 2
        assert get_http_settings().timeout == 30.0
        assert session.headers["Content-Type"] == "application/json"
    finally:
        configure_http(previous)


def test_graphql_request_omits_empty_variables():
    session = _session({"data": {"queueActions": []}})
    data = graphql_request("http://management.test", "mutation x { x }", {}, session=session, timeout=3)
    assert data == {"queueActions": []}
    _, kwargs = session.request.call_args
    assert kwargs["json"] == {"query": "mutation x { x }"}


def test_graphql_request_rejects_a_non_object_body():
    with pytest.raises(GraphQLRequestError, match="unexpected body"):
        graphql_request("http://network.test", "query x { x }", session=_session(["not", "an", "object"]))
