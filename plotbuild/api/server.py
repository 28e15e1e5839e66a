from __future__ import annotations

import os
from typing import Any, Dict, List

import pandas as pd
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from plotbuild.config.settings import get_settings
from plotbuild.engine.pipeline import build_plot
from plotbuild.exceptions import PlotBuildError
from plotbuild.models.plot_spec import AttributeSpec, Dataset, Expression, PlotSpec
from plotbuild.utils.logging import log_event, new_request_id

app = FastAPI(title="Plot Build API")

origins = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

MAX_ROWS = get_settings().max_rows


class TracePayload(BaseModel):
    source: str | None = None
    attrs: Dict[str, Any] = Field(default_factory=dict)


class DatasetPayload(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    groups: List[str] = Field(default_factory=list)


class BuildRequest(BaseModel):
    traces: List[TracePayload] = Field(default_factory=list)
    layout_attrs: List[TracePayload] = Field(default_factory=list)
    layout: Dict[str, Any] = Field(default_factory=dict)
    # already-built traces, passed through ahead of the evaluated ones
    data: List[Dict[str, Any]] = Field(default_factory=list)
    datasets: Dict[str, DatasetPayload] = Field(default_factory=dict)
    cur_data: str | None = None


def _validate_payload(req: BuildRequest) -> None:
    row_count = sum(len(ds.rows) for ds in req.datasets.values())
    if row_count > MAX_ROWS:
        raise HTTPException(
            status_code=413,
            detail={"code": "ROWS_LIMIT_EXCEEDED", "message": f"rows size must be <= {MAX_ROWS}"},
        )


def _to_attribute_spec(payload: TracePayload) -> AttributeSpec:
    return AttributeSpec(source=payload.source, attrs=Expression.coerce(payload.attrs))


def _to_plot_spec(req: BuildRequest) -> PlotSpec:
    try:
        datasets = {
            name: Dataset(frame=pd.DataFrame(ds.rows), groups=ds.groups)
            for name, ds in req.datasets.items()
        }
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "INVALID_DATASET", "message": str(exc)},
        ) from exc
    cur_data = req.cur_data
    if cur_data is None and len(datasets) == 1:
        cur_data = next(iter(datasets))
    return PlotSpec(
        attrs=[_to_attribute_spec(t) for t in req.traces],
        layout_attrs=[_to_attribute_spec(f) for f in req.layout_attrs],
        layout=req.layout,
        data=req.data,
        datasets=datasets,
        cur_data=cur_data,
    )


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok"}


@app.post("/build")
def build(req: BuildRequest) -> dict:
    _validate_payload(req)
    request_id = new_request_id()
    log_event(
        "request.build",
        {
            "request_id": request_id,
            "trace_count": len(req.traces),
            "dataset_count": len(req.datasets),
        },
    )
    spec = _to_plot_spec(req)
    try:
        return build_plot(spec, request_id=request_id)
    except PlotBuildError as exc:
        log_event(
            "build.error",
            {"request_id": request_id, "code": exc.code, "error": str(exc)},
            level="error",
        )
        raise HTTPException(
            status_code=422,
            detail={"code": exc.code, "message": str(exc)},
        ) from exc
