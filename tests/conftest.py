import logging
from typing import Any, Dict, List, Optional, Set

import httpx
import pytest
from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from opc_link_demo.core.client import OpcLinkClient

PREFIX = "/opc/api/v1"
BASE_URL = f"http://testserver{PREFIX}"


class ReadRequest(BaseModel):
    nodeId: str
    forceRefresh: bool = False


class WriteRequest(BaseModel):
    nodeId: str
    value: Any = None


class StubApi:
    """In-memory stand-in for the QNetLinks OPC REST API."""

    def __init__(self) -> None:
        self.nodes: Dict[str, Any] = {
            "ns=1;s=Boolean.0": False,
            "ns=1;s=Int16.1": 7,
            "ns=1;s=Float.2": 1.5,
            "ns=1;s=BooleanVector": [False, True, False],
            "ns=1;s=Int16Vector": [0, 7, -3],
            "ns=1;s=FloatVector": [0.0, 0.5, 1.5],
        }
        self.aliases: Dict[str, List[str]] = {"bool": ["ns=1;s=Boolean.0"]}
        self.failing: Set[str] = set()
        # path -> canned JSON body
        self.overrides: Dict[str, Any] = {}
        self.reads: List[Dict[str, Any]] = []
        self.writes: List[Dict[str, Any]] = []
        self.app = self._build_app()

    def _node(self, node_id: str, cached: Optional[bool] = None) -> Dict[str, Any]:
        if node_id not in self.nodes:
            raise HTTPException(status_code=404, detail=f"Node {node_id} not found")
        return {"nodeId": node_id, "value": self.nodes[node_id], "statusCode": "Good", "cached": cached}

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        router = APIRouter(prefix=PREFIX)

        @app.middleware("http")
        async def canned_responses(request: Request, call_next):
            path = request.url.path[len(PREFIX):]
            if path in self.failing:
                return JSONResponse({"error": "OPC server offline"}, status_code=503)
            if path in self.overrides:
                return JSONResponse(self.overrides[path])
            return await call_next(request)

        @router.get("/")
        async def api_info():
            return {"name": "QNetLinks OPC REST API", "version": "1.2.0"}

        @router.get("/health")
        async def health():
            return {"success": True, "data": {"status": "ok", "opcConnected": True, "uptime": 12.5}}

        @router.get("/values")
        async def values():
            return {"values": [self._node(node_id, cached=True) for node_id in self.nodes]}

        @router.get("/values/cached")
        async def cached_value(nodeId: str = Query(...)):
            return self._node(nodeId, cached=True)

        @router.get("/alias/{alias_type}")
        async def all_aliases(alias_type: str):
            if alias_type not in self.aliases:
                raise HTTPException(status_code=404, detail=f"No {alias_type} aliases")
            return [
                {"alias": alias_type, "index": i, "nodeId": node_id, "value": self.nodes[node_id]}
                for i, node_id in enumerate(self.aliases[alias_type])
            ]

        @router.get("/alias/{alias_type}/{index}")
        async def one_alias(alias_type: str, index: int):
            node_ids = self.aliases.get(alias_type, [])
            if index >= len(node_ids):
                raise HTTPException(status_code=404, detail=f"Alias {alias_type}.{index} not found")
            node_id = node_ids[index]
            return {"alias": alias_type, "index": index, "nodeId": node_id, "value": self.nodes[node_id]}

        @router.post("/read")
        async def read(req: ReadRequest):
            self.reads.append(req.model_dump())
            return self._node(req.nodeId, cached=not req.forceRefresh)

        @router.post("/write")
        async def write(req: WriteRequest):
            self.writes.append(req.model_dump())
            if req.nodeId not in self.nodes:
                return {"success": False, "error": "BadNodeIdUnknown"}
            self.nodes[req.nodeId] = req.value
            return {"success": True, "data": {"nodeId": req.nodeId, "value": req.value, "success": True}}

        app.include_router(router)
        return app


@pytest.fixture()
def stub_api():
    return StubApi()


@pytest.fixture()
def make_client(stub_api):
    """Build clients that talk to the stub app instead of the network."""

    def factory(base_url: str = BASE_URL, timeout: float = 10.0) -> OpcLinkClient:
        return OpcLinkClient(base_url, timeout=timeout, transport=httpx.ASGITransport(app=stub_api.app))

    return factory


@pytest.fixture()
async def client(make_client):
    async with make_client().connect() as connected:
        yield connected


@pytest.fixture()
def restore_root_logger():
    """Undo configure_logging() changes to the root logger."""
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
