from fastapi import FastAPI
from dotenv import load_dotenv
load_dotenv(dotenv_path=".env", override=False)
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func
from .routers import inbox, templates, activity
from .db.database import SessionLocal, ensure_schema
from .models.email_reply import EmailReply
from .core.logging import init_logging
from .core.errors import UpstreamError, NotFound
import logging, time, uuid
from fastapi import Request
from fastapi.responses import StreamingResponse
from .core.events import broadcaster
from fastapi.responses import JSONResponse
from asyncio import create_task, sleep

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_logging()
    ensure_schema()
    # Start keepalive task so idle SSE connections are not dropped by proxies
    async def _keepalive():
        while True:
            broadcaster.publish("keepalive", {})
            await sleep(15)
    ka_task = create_task(_keepalive())
    yield
    ka_task.cancel()

app = FastAPI(title="ReplyDesk", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inbox.router, prefix="/inbox", tags=["inbox"])
app.include_router(templates.router, prefix="/settings/quick-reply-templates", tags=["templates"])
app.include_router(activity.router, tags=["activity"])


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    return JSONResponse(status_code=502, content={"detail": str(exc), "service": exc.service})


@app.exception_handler(NotFound)
async def email_not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=200, content={
        "email": None, "error": exc.reason, "message": "Email not found", "account": exc.account, "success": False,
    })


@app.get("/health")
async def health():
    db = SessionLocal()
    try:
        replies = db.query(func.count(EmailReply.id)).scalar() or 0
    finally:
        db.close()
    return {"status": "ok", "replies": replies, "subscribers": broadcaster.subscriber_count}

@app.middleware("http")
async def timing_logger(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4())[:8])
    start = time.perf_counter()
    try:
        response = await call_next(request)
        duration = (time.perf_counter()-start)*1000
        logging.getLogger().info(
            f"{request.method} {request.url.path} {response.status_code} {duration:.1f}ms",
            extra={"trace_id": trace_id, "method": request.method, "path": request.url.path, "status": response.status_code, "duration_ms": round(duration,1)}
        )
        response.headers['X-Trace-Id'] = trace_id
        return response
    except Exception as exc:  # pragma: no cover
        duration = (time.perf_counter()-start)*1000
        logging.getLogger().error(
            f"ERR {request.method} {request.url.path} {type(exc).__name__}",
            exc_info=exc,
            extra={"trace_id": trace_id, "method": request.method, "path": request.url.path, "status": 500, "duration_ms": round(duration,1)}
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error", "trace_id": trace_id})

@app.get('/api/events')
async def sse_events(request: Request):  # pragma: no cover (difficult in unit tests)
    async def event_stream():
        async for msg in broadcaster.subscribe():
            # client disconnect handling
            if await request.is_disconnected():
                break
            yield msg
    return StreamingResponse(event_stream(), media_type='text/event-stream')
