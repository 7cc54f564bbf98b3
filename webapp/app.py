"""HTTP handler for triggering optimization runs."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orchestrator import check_services, run_batch, run_one
from utils.logger import setup_logger


logger = logging.getLogger(__name__)

SUPPORTED_COMMANDS = ("optimize", "batch", "test")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logger()
    yield


app = FastAPI(title="Article Optimizer", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.api_route("/optimize", methods=["GET", "POST"])
async def optimize(
    command: str = Query("optimize"),
    article_id: Optional[int] = Query(None, alias="articleId"),
) -> JSONResponse:
    if command not in SUPPORTED_COMMANDS:
        raise HTTPException(status_code=400, detail=f"Unknown command: {command}")

    payload: Dict[str, Any] = {"success": True, "message": "Optimizer executed successfully"}
    try:
        if command == "test":
            payload["services"] = await check_services()
        elif command == "batch":
            results = await run_batch()
            payload["results"] = [result.to_dict() for result in results]
        else:
            result = await run_one(article_id)
            if not result.success:
                return JSONResponse({"success": False, "error": result.error, "result": result.to_dict()}, status_code=500)
            payload["result"] = result.to_dict()
    except Exception as exc:
        logger.exception(f"Optimizer command '{command}' failed")
        return JSONResponse({"success": False, "error": str(exc)}, status_code=500)

    return JSONResponse(payload)
