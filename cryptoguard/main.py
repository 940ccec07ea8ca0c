# cryptoguard/main.py
import os
from tempfile import mkstemp

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.background import BackgroundTasks
from fastapi.responses import FileResponse

from dotenv import load_dotenv
load_dotenv()

from .errors import InvalidInputError, ScanStageError, is_rate_limited
from .logging_utils import configure_logging, get_logger
from .models import ScanResult
from .pdf_report.build import build_pdf
from .risk_engine.core import scan
from .storage.snapshots import clear_snapshot, load_snapshot, save_snapshot

configure_logging()
logger = get_logger(__name__)

app = FastAPI(title="CryptoGuard Risk API", version="0.1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

TARGET = Query(..., description="Contract/wallet address (0x...) or project URL (http...)")


async def _scan_or_http_error(target: str) -> ScanResult:
    try:
        return await scan(target)
    except InvalidInputError as e:
        raise HTTPException(400, detail=str(e))
    except ScanStageError as e:
        if is_rate_limited(e):
            logger.warning("Rate limited while scanning %s", target)
            raise HTTPException(429, detail=str(e))
        raise HTTPException(502, detail=str(e))


@app.api_route("/health", methods=["GET", "HEAD"])
async def health(request: Request):
    if request.method == "HEAD":
        return Response(status_code=200)
    return {"ok": True}


@app.get("/scan", response_model=ScanResult)
async def scan_target(target: str = TARGET):
    result = await _scan_or_http_error(target)
    save_snapshot(target, result)
    return result


@app.get("/report")
async def report(target: str = TARGET):
    snap = load_snapshot(target)
    if snap is None:
        snap = await _scan_or_http_error(target)
    fd, path = mkstemp(suffix=".pdf")
    os.close(fd)
    build_pdf(snap, path)
    clear_snapshot(target)
    cleanup = BackgroundTasks()
    cleanup.add_task(os.remove, path)
    return FileResponse(path, media_type="application/pdf", filename="cryptoguard-report.pdf", background=cleanup)
