"""FastAPI application that exposes the work timer over a local HTTP API."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .clock import Clock
from .config import TimerSettings
from .models import ReportPeriod, TimeReport, TimerRecord
from .paths import get_db_path
from .runtime import TimerRuntime

logger = logging.getLogger(__name__)


class StartPayload(BaseModel):
    work_item_id: int = Field(gt=0)
    work_item_title: str = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TimerSettings] = None,
    clock: Optional[Clock] = None,
    background: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or TimerSettings()
    runtime = TimerRuntime(resolved_db_path, resolved_settings, clock=clock)

    app = FastAPI(title="Work Timer", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.runtime = runtime

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        if background:
            runtime.start_background()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runtime.close()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        return {
            "state": rt.engine.state.value,
            "elapsed_seconds": rt.engine.elapsed_seconds(),
            "timer": _record_payload(rt.engine.snapshot()),
            "monitor_running": rt.monitor.is_running(),
            "database_path": str(request.app.state.db_path),
            "idle_minutes": resolved_settings.inactivity_timeout.total_seconds() / 60.0,
        }

    @app.post("/api/timer/start")
    def start_timer(payload: StartPayload, request: Request) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        try:
            ok = rt.engine.start(payload.work_item_id, payload.work_item_title)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _transition_payload(rt, ok)

    @app.post("/api/timer/pause")
    def pause_timer(request: Request) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        return _transition_payload(rt, rt.engine.pause())

    @app.post("/api/timer/resume")
    def resume_timer(request: Request) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        return _transition_payload(rt, rt.engine.resume())

    @app.post("/api/timer/activity")
    def record_activity(request: Request) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        rt.engine.record_activity()
        return _transition_payload(rt, True)

    @app.post("/api/timer/stop")
    def stop_timer(request: Request) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        result = rt.engine.stop()
        return {
            "ok": result is not None,
            "state": rt.engine.state.value,
            "result": asdict(result) if result else None,
        }

    @app.get("/api/report")
    def report(
        request: Request,
        period: ReportPeriod = Query(
            default=ReportPeriod.TODAY,
            description="One of Today, This Week, This Month, All Time.",
        ),
    ) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        return _report_payload(rt.ledger.report(period))

    @app.get("/api/entries")
    def entries(request: Request) -> Dict[str, Any]:
        rt: TimerRuntime = request.app.state.runtime
        return {"entries": [asdict(entry) for entry in rt.ledger.entries()]}

    return app


def _record_payload(record: Optional[TimerRecord]) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    payload = asdict(record)
    payload["state"] = record.state.value
    return payload


def _transition_payload(runtime: TimerRuntime, ok: bool) -> Dict[str, Any]:
    return {
        "ok": ok,
        "state": runtime.engine.state.value,
        "timer": _record_payload(runtime.engine.snapshot()),
    }


def _report_payload(report: TimeReport) -> Dict[str, Any]:
    buckets = [
        {
            "work_item_id": work_item_id,
            "total_seconds": bucket.total_seconds,
            "entries": [asdict(entry) for entry in bucket.entries],
        }
        for work_item_id, bucket in sorted(
            report.buckets.items(), key=lambda item: item[1].total_seconds, reverse=True
        )
    ]
    return {
        "period": report.period.value,
        "from": report.from_time,
        "to": report.to_time,
        "total_seconds": report.total_seconds,
        "buckets": buckets,
    }
