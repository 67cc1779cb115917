from __future__ import annotations

from decimal import Decimal
import logging
import math

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from api.schemas import EarningsFiltersModel, EarningsResponse, ErrorResponse
from core.data import MAX_UPLOAD_BYTES, RecordParseError, load_earnings_data, prepare_context
from core.filters import EarningsFilters, normalize_filters
from core.metrics_debug import compute_debug
from core.metrics_earnings import compute_earnings


app = FastAPI(title="Earnings Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    413: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _filters_from_model(model: EarningsFiltersModel) -> EarningsFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for Decimal/pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                Decimal: _safe_float,
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


class UploadTooLarge(ValueError):
    pass


def _read_upload(file: UploadFile) -> bytes:
    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise UploadTooLarge(f"Upload exceeds {MAX_UPLOAD_BYTES} bytes")
    return data


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/earnings", responses={200: {"model": EarningsResponse}, **ERROR_RESPONSES})
def earnings(filters: EarningsFiltersModel = Depends(), file: UploadFile = File(...)):
    try:
        data_ctx = load_earnings_data(_read_upload(file))
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_earnings(f, ctx))
    except UploadTooLarge as exc:
        return _error(413, exc)
    except RecordParseError as exc:
        logger.warning("earnings: unreadable upload %r: %s", file.filename, exc)
        return _error(422, exc)
    except Exception as exc:
        logger.exception("earnings failed")
        return _error(500, exc)


@app.post("/earnings/debug", responses=ERROR_RESPONSES)
def earnings_debug(filters: EarningsFiltersModel = Depends(), file: UploadFile = File(...)):
    try:
        data_ctx = load_earnings_data(_read_upload(file))
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_debug(f, ctx))
    except UploadTooLarge as exc:
        return _error(413, exc)
    except RecordParseError as exc:
        logger.warning("earnings_debug: unreadable upload %r: %s", file.filename, exc)
        return _error(422, exc)
    except Exception as exc:
        logger.exception("earnings_debug failed")
        return _error(500, exc)
