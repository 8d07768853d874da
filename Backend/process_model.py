from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
import asyncio
import logging

from Backend.config import Settings, get_settings
from Backend.errors import InternalError, QuoteError
from Backend.mesh_parser import parse_stl
from Backend.pricing import PricingEngine, Quote
from Backend.storage import UploadStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_engine(settings: Settings = Depends(get_settings)) -> PricingEngine:
    return PricingEngine(settings.pricing_policy())


def get_store(settings: Settings = Depends(get_settings)) -> UploadStore:
    return UploadStore(settings.UPLOAD_DIR, settings.SCRATCH_DIR)


def error_response(error: QuoteError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


def quote_and_store(
    content: bytes, settings: Settings, engine: PricingEngine, store: UploadStore
) -> Quote:
    """Stage, parse, price and (optionally) commit one upload. Blocking."""
    # The scratch copy is removed on every exit unless it was committed
    with store.staged(content) as scratch:
        geometry = parse_stl(scratch.read_bytes())
        quote = engine.quote(geometry)

        if settings.PERSIST_UPLOADS:
            stored = store.commit(scratch)
            quote = quote.with_file_url(store.public_url(stored, settings.public_host))
    return quote


@router.post("/price")
async def price_stl(
    file: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    engine: PricingEngine = Depends(get_engine),
    store: UploadStore = Depends(get_store),
):
    """Quote one STL upload and, on success, keep it under a random public name."""
    if file is None or not file.filename:
        return JSONResponse(status_code=400, content={"error": "No file uploaded."})

    content = await file.read()

    try:
        quote = await run_in_threadpool(quote_and_store, content, settings, engine, store)
    except QuoteError as e:
        logger.warning(f"Rejected {file.filename}: {e.message}")
        return error_response(e)
    except Exception:
        logger.exception(f"STL Error for {file.filename}")
        return error_response(InternalError())

    logger.info(
        f"Quoted {file.filename}: {quote.mass_grams:.2f} g, ${quote.price_dollars:.2f}"
    )
    return quote.display()


async def process_single_stl(file: UploadFile, engine: PricingEngine) -> dict:
    """Quote an individual STL file in a worker thread without storing it."""
    content = await file.read()

    try:
        quote = await run_in_threadpool(lambda: engine.quote(parse_stl(content)))
    except QuoteError as e:
        return {"filename": file.filename, "error": e.message}
    except Exception:
        logger.exception(f"STL Error for {file.filename}")
        return {"filename": file.filename, "error": InternalError().message}

    return {"filename": file.filename, **quote.display()}


@router.post("/price-multiple")
async def price_multiple_stl(
    files: list[UploadFile] = File(...),
    engine: PricingEngine = Depends(get_engine),
):
    """
    Quote multiple STL files concurrently.
    Returns individual results for each file.
    """
    tasks = [process_single_stl(file, engine) for file in files]
    results = await asyncio.gather(*tasks)

    response = {
        "processed": [],
        "errors": []
    }

    for result in results:
        if "error" in result:
            response["errors"].append(result)
        else:
            response["processed"].append(result)

    return JSONResponse(content=response)
