from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from finance_tracker.config import load_config
from finance_tracker.core.errors import (
    NotFoundError,
    ParseError,
    RowValidationError,
    ValidationError,
)
from finance_tracker.core.models import TransactionFilter, TransactionType
from finance_tracker.database import TransactionStore
from finance_tracker.importer import decode_upload, import_csv
from finance_tracker.schemas import (
    CategoryTotalOut,
    ImportOut,
    TransactionCreate,
    TransactionOut,
    TransactionPatch,
    TypeTotalOut,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> TransactionStore:
    return request.app.state.store


def _json_error(message: str, status: int, **extra: Any) -> JSONResponse:
    payload: Dict[str, Any] = {"error": message}
    payload.update(extra)
    return JSONResponse(jsonable_encoder(payload), status_code=status)


def _check_range(start_date: dt.date | None, end_date: dt.date | None) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("startDate must be on or before endDate")


def _is_csv(upload: UploadFile) -> bool:
    content_type = (upload.content_type or "").lower()
    filename = (upload.filename or "").lower()
    return "csv" in content_type or filename.endswith(".csv")


# -- Transactions -------------------------------------------------------


@router.post("/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(body: TransactionCreate, store: TransactionStore = Depends(get_store)):
    return store.create(body.to_draft())


@router.post("/transactions/import", response_model=List[TransactionOut], status_code=201)
def import_transactions(body: List[TransactionCreate], store: TransactionStore = Depends(get_store)):
    return store.bulk_create(item.to_draft() for item in body)


@router.get("/transactions", response_model=List[TransactionOut])
def list_transactions(
    start_date: Optional[dt.date] = Query(None, alias="startDate"),
    end_date: Optional[dt.date] = Query(None, alias="endDate"),
    tx_type: Optional[TransactionType] = Query(None, alias="type"),
    category: Optional[str] = Query(None),
    min_amount: Optional[Decimal] = Query(None, alias="minAmount"),
    max_amount: Optional[Decimal] = Query(None, alias="maxAmount"),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    store: TransactionStore = Depends(get_store),
):
    flt = TransactionFilter(
        start_date=start_date,
        end_date=end_date,
        type=tx_type,
        category=category or None,
        min_amount=min_amount,
        max_amount=max_amount,
        search_term=search_term or None,
    )
    return store.list(flt)


@router.get("/transactions/analytics/by-type", response_model=TypeTotalOut)
def total_by_type(
    tx_type: TransactionType = Query(..., alias="type"),
    start_date: Optional[dt.date] = Query(None, alias="startDate"),
    end_date: Optional[dt.date] = Query(None, alias="endDate"),
    store: TransactionStore = Depends(get_store),
):
    _check_range(start_date, end_date)
    return {"type": tx_type, "total": store.total_by_type(tx_type, start_date, end_date)}


@router.get("/transactions/analytics/by-category", response_model=List[CategoryTotalOut])
def totals_by_category(
    start_date: Optional[dt.date] = Query(None, alias="startDate"),
    end_date: Optional[dt.date] = Query(None, alias="endDate"),
    store: TransactionStore = Depends(get_store),
):
    _check_range(start_date, end_date)
    return store.totals_by_category(start_date, end_date)


@router.get("/transactions/{transaction_id}", response_model=TransactionOut)
def get_transaction(transaction_id: int, store: TransactionStore = Depends(get_store)):
    return store.get(transaction_id)


@router.patch("/transactions/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int,
    body: TransactionPatch,
    store: TransactionStore = Depends(get_store),
):
    return store.update(transaction_id, body.to_update())


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int, store: TransactionStore = Depends(get_store)):
    store.soft_delete(transaction_id)
    return Response(status_code=204)


# -- Imports ------------------------------------------------------------


@router.post("/imports/upload", response_model=ImportOut)
async def upload_csv(
    request: Request,
    file: Optional[UploadFile] = File(None),
    store: TransactionStore = Depends(get_store),
):
    if file is None or not _is_csv(file):
        return _json_error(
            "No file uploaded or invalid file type. Please upload a CSV file.", status=400
        )
    try:
        text = decode_upload(await file.read())
        result = import_csv(text, store, request.app.state.categories)
    except (ParseError, ValidationError):
        raise
    except Exception as exc:
        logger.exception("Unexpected failure importing %s", file.filename)
        return _json_error(f"Failed to import transactions: {exc}", status=500)
    finally:
        await file.close()
    return {
        "message": f"Successfully imported {result.count} transactions",
        "count": result.count,
        "ids": result.ids,
    }


# -- Application --------------------------------------------------------


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _json_error(str(exc), status=404)

    @app.exception_handler(ParseError)
    async def _parse_error(request: Request, exc: ParseError):
        return _json_error(str(exc), status=400)

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        extra = {"row": exc.row} if isinstance(exc, RowValidationError) else {}
        return _json_error(str(exc), status=400, **extra)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return _json_error("Invalid request", status=400, details=exc.errors())


def create_app(store: TransactionStore, config: Dict[str, Any] | None = None) -> FastAPI:
    """Build the API around *store*; routes live under ``api_prefix``."""
    config = config or load_config()
    app = FastAPI(title="Finance Tracker API")
    app.state.store = store
    app.state.categories = config.get("categories")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.get("cors_origins") or []),
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    _register_error_handlers(app)
    app.include_router(router, prefix=str(config.get("api_prefix") or ""))
    return app

