"""Price import/export and health API routes.

Thin HTTP boundary over PriceTransfer: reads the raw body and headers, hands
them to the orchestrator off the event loop, and shapes the response.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from priceport.domain.models import UploadStats

router = APIRouter()


@router.post("/api/v0/prices", response_model=UploadStats, tags=["prices"])
async def upload_prices(request: Request) -> UploadStats:
    """Ingest a zip archive holding one CSV file of price records.

    Totals in the response cover this upload only.
    """
    body = await request.body()
    transfer = request.app.state.transfer
    return await run_in_threadpool(
        transfer.handle_ingest, request.headers.get("content-type"), body
    )


@router.get("/api/v0/prices", tags=["prices"])
def download_prices(request: Request) -> Response:
    """Export every stored record as `prices.zip` (member `data.csv`)."""
    archive = request.app.state.transfer.handle_export()
    return Response(
        content=archive.content,
        media_type=archive.media_type,
        headers={"Content-Disposition": f'attachment; filename="{archive.filename}"'},
    )


@router.get("/health", tags=["health"])
def health_check(request: Request):
    """Check application health.

    Verifies database connectivity with a `SELECT 1` probe.
    """
    if request.app.state.gateway.ping():
        return {"status": "ok", "database": "connected"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "error", "database": "disconnected"},
    )
