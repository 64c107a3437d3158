import logging
import math
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Union

import httpx

from .exceptions import OpcLinkConnectionError, OpcLinkError, OpcLinkHTTPError
from .models import (
    NODE_KINDS,
    AliasType,
    AliasValue,
    ApiInfo,
    HealthStatus,
    NodeValue,
    WriteResult,
    channel_node_id,
    parse_node_values,
    vector_node_id,
)

logger = logging.getLogger(__name__)

INT16_MIN = -32768
INT16_MAX = 32767


class OpcLinkClient:
    """Async client for the QNetLinks OPC REST API.

    One request per call; caching and reconnection are left to the server.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    @asynccontextmanager
    async def connect(self):
        """Context manager that opens and closes the HTTP session."""
        self.client = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        )
        try:
            yield self
        finally:
            await self.client.aclose()
            self.client = None

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        if not self.client:
            raise RuntimeError("Client is not connected")

        logger.debug("%s %s %s", method, path, kwargs or "")
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise OpcLinkConnectionError(f"Cannot reach {self.base_url}: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise OpcLinkHTTPError(message, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise OpcLinkError(f"Invalid JSON from {path}: {e}") from e

        # {"success", "data" or "error"} envelope; bare WriteResult bodies also carry "success"
        if isinstance(payload, dict) and "success" in payload and ("data" in payload or "error" in payload):
            if not payload["success"]:
                raise OpcLinkError(payload.get("error") or payload.get("message") or "Request failed")
            return payload.get("data")
        return payload

    # --- API information ---

    async def get_api_info(self) -> ApiInfo:
        return ApiInfo.model_validate(await self._request("GET", "/"))

    async def get_health(self) -> HealthStatus:
        return HealthStatus.model_validate(await self._request("GET", "/health"))

    # --- cached values ---

    async def get_values(self) -> List[NodeValue]:
        """All values currently held in the API cache."""
        return parse_node_values(await self._request("GET", "/values"))

    async def get_value(self, node_id: str) -> NodeValue:
        """Cached value of one node, without a server round trip."""
        payload = await self._request("GET", "/values/cached", params={"nodeId": node_id})
        return NodeValue.model_validate(payload)

    # --- aliases ---

    async def get_alias(self, alias_type: Union[AliasType, str], index: int) -> AliasValue:
        alias_type = _alias_type(alias_type)
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"Alias index must be a non-negative integer, got {index!r}")
        payload = await self._request("GET", f"/alias/{alias_type.value}/{index}")
        return AliasValue.model_validate(payload)

    async def get_all_aliases(self, alias_type: Union[AliasType, str]) -> List[AliasValue]:
        alias_type = _alias_type(alias_type)
        payload = await self._request("GET", f"/alias/{alias_type.value}")
        if isinstance(payload, dict) and "aliases" in payload:
            payload = payload["aliases"]
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise OpcLinkError(f"Unexpected aliases payload: {payload!r}")
        return [AliasValue.model_validate(item) for item in payload]

    # --- reads ---

    async def read_node(self, node_id: str, force_refresh: bool = False) -> NodeValue:
        payload = await self._request(
            "POST", "/read", json={"nodeId": node_id, "forceRefresh": force_refresh}
        )
        return NodeValue.model_validate(payload)

    async def read_boolean(self, channel: int, force_refresh: bool = False) -> NodeValue:
        return await self.read_node(channel_node_id(NODE_KINDS[AliasType.BOOL], channel), force_refresh)

    async def read_int16(self, channel: int, force_refresh: bool = False) -> NodeValue:
        return await self.read_node(channel_node_id(NODE_KINDS[AliasType.INT16], channel), force_refresh)

    async def read_float(self, channel: int, force_refresh: bool = False) -> NodeValue:
        return await self.read_node(channel_node_id(NODE_KINDS[AliasType.FLOAT], channel), force_refresh)

    async def read_boolean_vector(self, force_refresh: bool = False) -> NodeValue:
        return await self.read_node(vector_node_id(NODE_KINDS[AliasType.BOOL]), force_refresh)

    async def read_int16_vector(self, force_refresh: bool = False) -> NodeValue:
        return await self.read_node(vector_node_id(NODE_KINDS[AliasType.INT16]), force_refresh)

    async def read_float_vector(self, force_refresh: bool = False) -> NodeValue:
        return await self.read_node(vector_node_id(NODE_KINDS[AliasType.FLOAT]), force_refresh)

    # --- writes ---

    async def write_node(self, node_id: str, value) -> WriteResult:
        payload = await self._request("POST", "/write", json={"nodeId": node_id, "value": value})
        return WriteResult.model_validate(payload)

    async def write_boolean(self, channel: int, value: bool) -> WriteResult:
        if not isinstance(value, bool):
            raise ValueError(f"Boolean write expects True or False, got {value!r}")
        return await self.write_node(channel_node_id(NODE_KINDS[AliasType.BOOL], channel), value)

    async def write_int16(self, channel: int, value: int) -> WriteResult:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Int16 write expects an integer, got {value!r}")
        if not INT16_MIN <= value <= INT16_MAX:
            raise ValueError(f"Int16 value {value} out of range [{INT16_MIN}, {INT16_MAX}]")
        return await self.write_node(channel_node_id(NODE_KINDS[AliasType.INT16], channel), value)

    async def write_float(self, channel: int, value: float) -> WriteResult:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValueError(f"Float write expects a finite number, got {value!r}")
        return await self.write_node(channel_node_id(NODE_KINDS[AliasType.FLOAT], channel), float(value))


def _alias_type(alias_type: Union[AliasType, str]) -> AliasType:
    try:
        return AliasType(alias_type)
    except ValueError:
        allowed = ", ".join(t.value for t in AliasType)
        raise ValueError(f"Unknown alias type {alias_type!r}, expected one of: {allowed}") from None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"
