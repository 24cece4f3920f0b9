"""HTTP calls against endpoints pre-configured on the agent, with per-endpoint authentication."""
from __future__ import annotations

import re
from typing import Any, Dict, Tuple
from urllib.parse import quote

import httpx

from agents.security import PassthroughDecryptor, SecretDecryptor
from agents.tools.base import ToolBase
from agents.tools.exceptions import ToolConfigurationError, ToolExecutionError
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
BODY_METHODS = {"POST", "PUT", "PATCH"}
_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")
_SECRET_FIELDS = ("token", "key_value", "api_key", "cookie")


class ApiCallerTool(ToolBase):
    name = "api_caller"
    description = "Make HTTP requests to pre-configured API endpoints with authentication"

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        decryptor: SecretDecryptor | None = None,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        super().__init__()
        self.client = client or httpx.Client(follow_redirects=True)
        self.decryptor = decryptor or PassthroughDecryptor()
        self.default_timeout = default_timeout

    def validate(self, parameters: Dict[str, Any]) -> None:
        super().validate(parameters)
        if not parameters.get("endpoint_name") and not parameters.get("url"):
            raise ToolConfigurationError(
                "Either endpoint_name or url parameter is required for API caller", tool_id=self.id
            )
        for key in ("path_params", "query_params", "headers"):
            if parameters.get(key) is not None and not isinstance(parameters[key], dict):
                raise ToolConfigurationError(f"'{key}' must be an object", tool_id=self.id)

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        endpoint_name = parameters.get("endpoint_name")
        method = str(parameters.get("method") or "GET").upper()
        query_params = dict(parameters.get("query_params") or {})

        if endpoint_name:
            url, auth_headers, auth_query = self.resolve_endpoint(
                endpoint_name, method, parameters.get("path_params") or {}, config
            )
            query_params.update(auth_query)
        else:
            url, auth_headers = str(parameters["url"]), {}

        headers = {"Content-Type": "application/json", **auth_headers, **(parameters.get("headers") or {})}
        timeout = parameters.get("timeout") or config.get("timeout") or self.default_timeout

        request_kwargs: Dict[str, Any] = {}
        body = parameters.get("body_data")
        if body is not None and method in BODY_METHODS:
            if isinstance(body, str):
                request_kwargs["content"] = body
            else:
                request_kwargs["json"] = body

        final_url = httpx.URL(url).copy_merge_params({k: str(v) for k, v in query_params.items()})
        try:
            response = self.client.request(
                method, final_url, headers=headers, timeout=float(timeout), **request_kwargs
            )
        except httpx.TimeoutException as exc:
            raise ToolExecutionError(f"Request timeout after {timeout}s: {exc}", tool_id=self.id) from exc
        except httpx.HTTPError as exc:
            raise ToolExecutionError(f"Request error: {exc}", tool_id=self.id) from exc

        success = 200 <= response.status_code < 300
        logger.info(
            "api_call_completed",
            endpoint=endpoint_name,
            method=method,
            url=str(final_url),
            status_code=response.status_code,
        )
        return {
            "endpoint_name": endpoint_name,
            "url": str(final_url),
            "method": method,
            "status_code": response.status_code,
            "success": success,
            "headers": dict(response.headers),
            "body": self._parse_body(response),
        }

    def resolve_endpoint(
        self,
        endpoint_name: str,
        method: str,
        path_params: Dict[str, Any],
        config: Dict[str, Any],
    ) -> Tuple[str, Dict[str, str], Dict[str, str]]:
        """Return the URL (without query string) and the auth headers/query params for an endpoint."""
        endpoints = config.get("endpoints") or {}
        endpoint = endpoints.get(endpoint_name)
        if not endpoint:
            raise ToolConfigurationError(
                f"Endpoint '{endpoint_name}' not configured for this agent", tool_id=self.id
            )
        base_url, path = endpoint.get("base_url"), endpoint.get("path")
        if not base_url or not path:
            raise ToolConfigurationError(
                f"Endpoint '{endpoint_name}' missing base_url or path configuration", tool_id=self.id
            )

        allowed = [m.upper() for m in endpoint.get("methods") or []]
        if allowed and method not in allowed:
            raise ToolConfigurationError(
                f"Method {method} not allowed for endpoint '{endpoint_name}' (allowed: {', '.join(allowed)})",
                tool_id=self.id,
            )

        url = build_url(base_url, substitute_path_params(path, path_params, tool_id=self.id))
        auth = endpoint.get("authentication") or config.get("authentication")
        headers, query = self.auth_for(auth)
        return url, headers, query

    def auth_for(self, auth: Dict[str, Any] | None) -> Tuple[Dict[str, str], Dict[str, str]]:
        if not auth:
            return {}, {}
        auth = self._decrypt(auth)
        headers: Dict[str, str] = {}
        query: Dict[str, str] = {}

        auth_type = auth.get("type")
        if auth_type == "bearer_token":
            if auth.get("token"):
                headers["Authorization"] = f"Bearer {auth['token']}"
        elif auth_type == "api_key":
            if auth.get("key_value"):
                key_name = auth.get("key_name") or "X-API-Key"
                if auth.get("location", "header") == "query":
                    query[key_name] = auth["key_value"]
                else:
                    headers[key_name] = auth["key_value"]
            elif auth.get("api_key"):
                headers[auth.get("header") or "X-API-Key"] = auth["api_key"]
        elif auth_type == "cookie":
            if auth.get("cookie"):
                headers["Cookie"] = auth["cookie"]
        else:
            logger.warning("unknown_auth_type", auth_type=auth_type, tool=self.id)
        return headers, query

    def _decrypt(self, auth: Dict[str, Any]) -> Dict[str, Any]:
        if not auth.get("encrypted"):
            return auth
        decrypted = dict(auth)
        for key in _SECRET_FIELDS:
            if decrypted.get(key):
                decrypted[key] = self.decryptor.decrypt(decrypted[key])
        return decrypted

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if "json" in response.headers.get("content-type", "").lower():
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text


def substitute_path_params(path: str, path_params: Dict[str, Any], *, tool_id: str = "api_caller") -> str:
    """Fill ``{name}`` placeholders with URL-encoded values; unresolved placeholders are an error."""
    for key, value in path_params.items():
        path = path.replace("{" + str(key) + "}", quote(str(value), safe=""))
    unresolved = _PLACEHOLDER_RE.findall(path)
    if unresolved:
        raise ToolConfigurationError(
            f"Unresolved path parameter(s): {', '.join(unresolved)}", tool_id=tool_id
        )
    return path


def build_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
