"""Payload models for the QNetLinks OPC REST API."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AliasType(str, Enum):
    BOOL = "bool"
    INT16 = "int16"
    FLOAT = "float"


# Alias type -> node name prefix used by the server
NODE_KINDS = {
    AliasType.BOOL: "Boolean",
    AliasType.INT16: "Int16",
    AliasType.FLOAT: "Float",
}


def channel_node_id(kind: str, channel: int) -> str:
    """Node id of a scalar channel, e.g. ``ns=1;s=Float.2``."""
    if isinstance(channel, bool) or not isinstance(channel, int) or channel < 0:
        raise ValueError(f"Channel must be a non-negative integer, got {channel!r}")
    return f"ns=1;s={kind}.{channel}"


def vector_node_id(kind: str) -> str:
    return f"ns=1;s={kind}Vector"


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ApiInfo(_ApiModel):
    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    endpoints: Optional[Any] = None


class HealthStatus(_ApiModel):
    status: Optional[str] = None
    opc_connected: Optional[bool] = Field(default=None, alias="opcConnected")
    uptime: Optional[float] = None
    timestamp: Optional[str] = None


class NodeValue(_ApiModel):
    node_id: Optional[str] = Field(default=None, alias="nodeId")
    value: Any = None
    data_type: Optional[str] = Field(default=None, alias="dataType")
    status_code: Optional[str] = Field(default=None, alias="statusCode")
    source_timestamp: Optional[str] = Field(default=None, alias="sourceTimestamp")
    server_timestamp: Optional[str] = Field(default=None, alias="serverTimestamp")
    cached: Optional[bool] = None


class AliasValue(_ApiModel):
    alias: Optional[str] = None
    index: Optional[int] = None
    node_id: Optional[str] = Field(default=None, alias="nodeId")
    value: Any = None
    data_type: Optional[str] = Field(default=None, alias="dataType")


class WriteResult(_ApiModel):
    node_id: Optional[str] = Field(default=None, alias="nodeId")
    value: Any = None
    success: Optional[bool] = None
    status_code: Optional[str] = Field(default=None, alias="statusCode")
    message: Optional[str] = None


def parse_node_values(payload: Any) -> List[NodeValue]:
    """Accept a list, a ``{"values": [...]}`` envelope or a nodeId -> value mapping."""
    if isinstance(payload, dict) and "values" in payload:
        payload = payload["values"]
    if isinstance(payload, list):
        return [NodeValue.model_validate(item) for item in payload]
    if isinstance(payload, dict):
        values: List[NodeValue] = []
        for node_id, item in payload.items():
            if isinstance(item, dict):
                values.append(NodeValue.model_validate({"nodeId": node_id, **item}))
            else:
                values.append(NodeValue(node_id=node_id, value=item))
        return values
    raise ValueError(f"Unexpected values payload: {payload!r}")


def to_jsonable(result: Any) -> Any:
    """Convert models (or lists/dicts of them) to plain JSON-ready data."""
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True, exclude_none=True)
    if isinstance(result, list):
        return [to_jsonable(item) for item in result]
    if isinstance(result, dict):
        return {key: to_jsonable(value) for key, value in result.items()}
    return result
