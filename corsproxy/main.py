# corsproxy/main.py
import logging
import uuid
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import Response

import pipeline
from config import settings
from models import IncomingRequest
from policy import Policy

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

# Built once per process; immutable for every invocation.
policy = Policy.from_settings(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Shared HTTP client — connection pools are reused across all relayed requests.
    app.state.http_client = httpx.AsyncClient()
    logger.info("HTTP client initialised, upstream=%s", policy.upstream_base or "<unset>")
    if not policy.upstream_base:
        logger.warning("UPSTREAM_BASE is not set; every relayed request will fail with 500")

    yield

    await app.state.http_client.aclose()


app = FastAPI(title="CORS Proxy", version="1.0.0", lifespan=lifespan)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Propagate or generate an X-Request-ID header for end-to-end tracing."""
    req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = req_id
    response = await call_next(request)
    response.headers["x-request-id"] = req_id
    return response


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
)
async def relay(path: str, request: Request) -> Response:
    incoming = IncomingRequest(
        method=request.method,
        path=request.url.path,
        headers=dict(request.headers),
        body=await request.body(),
    )
    result = await pipeline.handle(incoming, policy, request.app.state.http_client)
    return Response(
        content=result.raw_body(),
        status_code=result.status_code,
        headers=result.headers,
    )


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
