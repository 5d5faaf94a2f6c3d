from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from chart_api.credentials import CredentialProvider, HeaderCredentialProvider
from chart_api.schemas import ChartDataRequest, CreateDatasetRequest, DatasetModel
from chart_core import config
from chart_core.datasets import Dataset, DatasetStore
from chart_core.engine import evaluate
from chart_core.errors import ConfigurationError, DatasetConflict, DatasetNotFound
from chart_core.export import export_filename, rows_to_csv
from chart_core.query import normalize_query

logger = logging.getLogger(__name__)

router = APIRouter()


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
            },
        ),
    )


def _ok(data: object, status_code: int = 200) -> JSONResponse:
    return _json({"success": True, "data": data}, status_code=status_code)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return _json({"success": False, "message": message, **extra}, status_code=status_code)


def _dataset_payload(ds: Dataset, *, include_rows: bool) -> Dict[str, Any]:
    model = DatasetModel(**ds.to_dict(include_rows=include_rows))
    return model.model_dump(by_alias=True, exclude=None if include_rows else {"data"})


def get_store(request: Request) -> DatasetStore:
    return request.app.state.store


def get_user(request: Request) -> Optional[str]:
    credentials: CredentialProvider = request.app.state.credentials
    return credentials.identify(request)


def _run_query(body: ChartDataRequest, store: DatasetStore, user: Optional[str]):
    query = normalize_query(body.to_query())
    dataset = store.get(query.dataset_id, user)
    return query, evaluate(dataset, query)


@router.get("/health")
def health(store: DatasetStore = Depends(get_store)):
    return _json({"status": "ok", "datasets": len(store)})


@router.post("/api/charts/data")
def chart_data(
    body: ChartDataRequest,
    store: DatasetStore = Depends(get_store),
    user: Optional[str] = Depends(get_user),
):
    try:
        _, rows = _run_query(body, store, user)
        return _ok(rows)
    except DatasetNotFound as exc:
        logger.info("chart_data: %s (user=%s)", exc, user)
        return _error(404, f"Failed to load chart data: {exc}")
    except ConfigurationError as exc:
        return _error(400, exc.message, field=exc.field)
    except Exception:
        logger.exception("chart_data failed")
        return _error(500, "Failed to load chart data")


@router.post("/api/charts/export")
def chart_export(
    body: ChartDataRequest,
    store: DatasetStore = Depends(get_store),
    user: Optional[str] = Depends(get_user),
):
    try:
        query, rows = _run_query(body, store, user)
        filename = export_filename(query.to_dict())
        return Response(
            content=rows_to_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except DatasetNotFound as exc:
        logger.info("chart_export: %s (user=%s)", exc, user)
        return _error(404, f"Failed to load chart data: {exc}")
    except ConfigurationError as exc:
        return _error(400, exc.message, field=exc.field)
    except Exception:
        logger.exception("chart_export failed")
        return _error(500, "Failed to export chart data")


@router.get("/api/datasets")
def list_datasets(store: DatasetStore = Depends(get_store), user: Optional[str] = Depends(get_user)):
    return _ok([_dataset_payload(ds, include_rows=False) for ds in store.list(user)])


@router.get("/api/datasets/{dataset_id}")
def get_dataset(dataset_id: int, store: DatasetStore = Depends(get_store), user: Optional[str] = Depends(get_user)):
    return _ok(_dataset_payload(store.get(dataset_id, user), include_rows=True))


@router.post("/api/datasets")
def create_dataset(
    body: CreateDatasetRequest,
    store: DatasetStore = Depends(get_store),
    user: Optional[str] = Depends(get_user),
):
    if not body.data:
        raise ConfigurationError("data", "Dataset data is required")
    ds = store.create(body.name, body.data, owner=user)
    return _ok(_dataset_payload(ds, include_rows=False), status_code=201)


@router.delete("/api/datasets/{dataset_id}")
def delete_dataset(dataset_id: int, store: DatasetStore = Depends(get_store), user: Optional[str] = Depends(get_user)):
    store.delete(dataset_id, user)
    return _ok({"id": dataset_id})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ConfigurationError)
    async def _configuration_error(request: Request, exc: ConfigurationError):
        return _error(400, exc.message, field=exc.field)

    @app.exception_handler(DatasetNotFound)
    async def _not_found(request: Request, exc: DatasetNotFound):
        return _error(404, str(exc))

    @app.exception_handler(DatasetConflict)
    async def _conflict(request: Request, exc: DatasetConflict):
        return _error(409, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _validation(request: Request, exc: RequestValidationError):
        fields = {".".join(str(p) for p in err["loc"][1:]): err["msg"] for err in exc.errors()}
        return _error(400, "Validation failed", errors=fields)


def create_app(
    store: Optional[DatasetStore] = None,
    credentials: Optional[CredentialProvider] = None,
    *,
    seed_path: Optional[Path] = None,
) -> FastAPI:
    app = FastAPI(title="Chart Data API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if store is None:
        store = DatasetStore()
        seed_path = seed_path or config.SEED_PATH
    if seed_path:
        store.load_json(seed_path)
    app.state.store = store
    app.state.credentials = credentials or HeaderCredentialProvider(config.USER_HEADER)

    _install_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()


def serve() -> None:
    import uvicorn

    config.configure_logging()
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
