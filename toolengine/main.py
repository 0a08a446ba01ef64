"""FastAPI front end for the tool engine."""

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import DEFAULT_SEARCH_LIMIT, LOG_LEVEL
from .tools import ToolCall, ToolRegistry, prepare_tool_calls, run_tool_calls
from .tools.search import SearchError, search_web

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


class TextRequest(BaseModel):
    """Raw model output to scan for tool calls."""
    text: str


class ExecuteRequest(BaseModel):
    """A single tool call supplied directly by the caller."""
    tool: str
    parameters: Dict[str, Any] = {}


class SearchRequest(BaseModel):
    query: str
    limit: int = DEFAULT_SEARCH_LIMIT


def _registry(request: Request) -> ToolRegistry:
    return request.app.state.registry


def create_app(registry: Optional[ToolRegistry] = None) -> FastAPI:
    """Build the API around `registry` (a fresh built-in registry by default)."""
    app = FastAPI(title="Tool Engine API")
    app.state.registry = registry if registry is not None else ToolRegistry()

    # Configurable CORS origins
    cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "Tool Engine API"}

    @app.get("/api/tools")
    async def get_tools(request: Request):
        """Return the catalog with parameter schemas."""
        return [
            {"name": d.name, "description": d.description, "parameters": d.to_schema()}
            for d in _registry(request).catalog.list()
        ]

    @app.get("/api/tools/prompt")
    async def get_tools_prompt(request: Request):
        """Return the tool instructions for a system prompt."""
        return {"prompt": _registry(request).catalog.prompt_summary()}

    @app.get("/api/tools/capabilities")
    async def get_capabilities(request: Request):
        """Return which runtime capabilities have been injected."""
        context = _registry(request).context
        return {"available": context.names(), "capabilities": context.snapshot()}

    @app.post("/api/tools/extract")
    async def extract(body: TextRequest, request: Request):
        """Extract tool calls from text and report whether each one validates."""
        prepared = prepare_tool_calls(body.text, _registry(request).catalog)
        return {
            "calls": [
                {
                    "tool": call.tool,
                    "parameters": call.parameters,
                    "valid": validation.valid,
                    "error": validation.error,
                    "normalized_parameters": validation.call.parameters if validation.call else None,
                }
                for call, validation in prepared
            ]
        }

    @app.post("/api/tools/execute")
    async def execute(body: ExecuteRequest, request: Request):
        """Validate and execute a single tool call."""
        result = await _registry(request).execute(ToolCall(tool=body.tool, parameters=body.parameters))
        return result.to_dict()

    @app.post("/api/tools/run")
    async def run(body: TextRequest, request: Request):
        """Extract and execute every tool call in the text, in order."""
        results = await run_tool_calls(body.text, _registry(request))
        return {"results": [r.to_dict() for r in results]}

    @app.post("/api/search")
    async def search(body: SearchRequest):
        """Web search proxy for clients that cannot reach DuckDuckGo directly."""
        query = body.query.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Query must not be empty")
        try:
            results = await search_web(query, max(1, body.limit))
        except SearchError as e:
            logger.warning("Search for %r failed: %s", query, e)
            raise HTTPException(status_code=502, detail=str(e))
        return {"results": results}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
