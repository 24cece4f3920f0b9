import json

import httpx
import pytest

from agents.tools.builtin.api_caller import ApiCallerTool, build_url, substitute_path_params
from agents.tools.exceptions import ToolConfigurationError, ToolExecutionError


class ReversingDecryptor:
    def decrypt(self, ciphertext: str) -> str:
        return ciphertext[::-1]


def _tool(handler, **kwargs):
    return ApiCallerTool(httpx.Client(transport=httpx.MockTransport(handler)), **kwargs)


def _config(**endpoint):
    base = {"base_url": "https://api.example.test/", "path": "/users/{id}", "methods": ["GET", "POST"]}
    return {"endpoints": {"users": {**base, **endpoint}}}


def test_substitute_path_params_encodes_values():
    assert substitute_path_params("/users/{id}/files/{name}", {"id": 7, "name": "a b/c"}) == "/users/7/files/a%20b%2Fc"


def test_substitute_path_params_rejects_unresolved_placeholders():
    with pytest.raises(ToolConfigurationError) as exc:
        substitute_path_params("/users/{id}/orders/{order_id}", {"id": 1})
    assert exc.value.message == "Unresolved path parameter(s): order_id"


def test_build_url_joins_with_single_slash():
    assert build_url("https://x.test/", "/v1/a") == "https://x.test/v1/a"
    assert build_url("https://x.test", "v1/a") == "https://x.test/v1/a"


def test_get_request_with_path_query_and_bearer_auth():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, json={"id": 5, "name": "Ada"})

    config = _config(authentication={"type": "bearer_token", "token": "t0k"})
    result = _tool(handler).execute(
        {"endpoint_name": "users", "path_params": {"id": 5}, "query_params": {"expand": "true"}}, config
    )

    request = captured["request"]
    assert request.method == "GET"
    assert str(request.url) == "https://api.example.test/users/5?expand=true"
    assert request.headers["Authorization"] == "Bearer t0k"
    assert request.content == b""
    assert result["status_code"] == 200
    assert result["success"] is True
    assert result["body"] == {"id": 5, "name": "Ada"}
    assert result["endpoint_name"] == "users"


def test_post_sends_json_body_and_caller_headers():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(201, text="created")

    result = _tool(handler).execute(
        {
            "endpoint_name": "users",
            "method": "post",
            "path_params": {"id": 1},
            "body_data": {"name": "Grace"},
            "headers": {"X-Trace": "abc"},
        },
        _config(),
    )

    request = captured["request"]
    assert request.method == "POST"
    assert json.loads(request.content) == {"name": "Grace"}
    assert request.headers["X-Trace"] == "abc"
    assert result["body"] == "created"
    assert result["status_code"] == 201


def test_non_2xx_is_a_successful_invocation_with_success_false():
    result = _tool(lambda request: httpx.Response(404, json={"error": "nope"})).execute(
        {"endpoint_name": "users", "path_params": {"id": 1}}, _config()
    )
    assert result["success"] is False
    assert result["status_code"] == 404


def test_api_key_in_query_and_legacy_header():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    tool = _tool(handler)
    tool.execute(
        {"endpoint_name": "users", "path_params": {"id": 1}},
        _config(authentication={"type": "api_key", "key_name": "key", "key_value": "abc", "location": "query"}),
    )
    tool.execute(
        {"endpoint_name": "users", "path_params": {"id": 1}},
        _config(authentication={"type": "api_key", "api_key": "legacy"}),
    )

    assert seen[0].url.params["key"] == "abc"
    assert seen[1].headers["X-API-Key"] == "legacy"


def test_encrypted_credentials_are_decrypted():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    config = _config(authentication={"type": "cookie", "cookie": "1=noisses", "encrypted": True})
    _tool(handler, decryptor=ReversingDecryptor()).execute({"endpoint_name": "users", "path_params": {"id": 1}}, config)

    assert seen[0].headers["Cookie"] == "session=1"


def test_unknown_endpoint_and_disallowed_method():
    tool = _tool(lambda request: httpx.Response(200))

    with pytest.raises(ToolConfigurationError, match="Endpoint 'orders' not configured"):
        tool.execute({"endpoint_name": "orders"}, _config())
    with pytest.raises(ToolConfigurationError, match="Method DELETE not allowed"):
        tool.execute({"endpoint_name": "users", "method": "DELETE", "path_params": {"id": 1}}, _config())


def test_missing_endpoint_name_and_url_fails_validation():
    with pytest.raises(ToolConfigurationError):
        ApiCallerTool().validate({"method": "GET"})


def test_timeout_maps_to_execution_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(ToolExecutionError, match="Request timeout"):
        _tool(handler).execute({"endpoint_name": "users", "path_params": {"id": 1}, "timeout": 2}, _config())


def test_connection_error_maps_to_execution_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ToolExecutionError, match="Request error"):
        _tool(handler).execute({"endpoint_name": "users", "path_params": {"id": 1}}, _config())
