"""
HTTP + WebSocket transport for the dashboard front end.

Serves the cached datasets as JSON, accepts RAG status edits, and pushes
updates to connected browsers whenever an input workbook changes.

Run with:  python main.py serve
"""

import asyncio
import contextlib
import logging
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import DATA_DIR, WATCH_POLL_SECONDS
from .discovery import discover_files
from .ingest import load_all, refresh
from .loaders.workbook import WorkbookReadError
from .models import DatasetKey
from .rag import update_rag_metric
from .store import DatasetStore
from .watcher import REMOVED, FileWatcher

logger = logging.getLogger(__name__)


class RagUpdate(BaseModel):
    """POST /api/rag body."""

    function: str | None = None
    fy: str | None = None
    key: str | None = None
    value: str | None = None


class ConnectionHub:
    """Connected dashboard clients and broadcast helpers."""

    def __init__(self, store: DatasetStore):
        self.store = store
        self.clients: set[WebSocket] = set()

    def functions_message(self) -> dict:
        return {
            "type": "functions",
            "functions": self.store.functions(),
            "defaultFunction": self.store.default_function(),
        }

    def years_message(self, function: str) -> dict:
        return {
            "type": "years",
            "function": function,
            "years": self.store.years(function),
            "defaultYear": self.store.default_year(function),
        }

    def data_message(self, key: DatasetKey) -> dict | None:
        dataset = self.store.get(key)
        if dataset is None:
            return None
        return {
            "type": "data",
            "function": key.function,
            "fy": key.fiscal_year,
            "payload": dataset.to_dict(),
        }

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self.clients.add(ws)
        logger.info("Dashboard client connected (total: %d)", len(self.clients))

        await ws.send_json(self.functions_message())
        func = self.store.default_function()
        if func:
            await ws.send_json(self.years_message(func))
            year = self.store.default_year(func)
            if year:
                message = self.data_message(DatasetKey(func, year))
                if message:
                    await ws.send_json(message)

    def disconnect(self, ws: WebSocket) -> None:
        self.clients.discard(ws)
        logger.info("Dashboard client disconnected (total: %d)", len(self.clients))

    async def broadcast(self, message: dict | None) -> None:
        if message is None:
            return
        for ws in list(self.clients):
            try:
                await ws.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                self.clients.discard(ws)

    async def broadcast_update(self, key: DatasetKey) -> None:
        await self.broadcast(self.data_message(key))
        await self.broadcast(self.years_message(key.function))
        logger.info(
            "Broadcasted %s/%s update to %d client(s)",
            key.function, key.fiscal_year, len(self.clients),
        )


async def watch_loop(
    watcher: FileWatcher,
    store: DatasetStore,
    hub: ConnectionHub,
    interval: float = WATCH_POLL_SECONDS,
) -> None:
    """Poll the data directory forever, applying and broadcasting changes.

    A failed pass is logged and the next one runs as usual.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            await watch_once(watcher, store, hub)
        except Exception:
            logger.exception("File watch pass failed, continuing")


async def watch_once(watcher: FileWatcher, store: DatasetStore, hub: ConnectionHub) -> None:
    events = await asyncio.to_thread(watcher.poll)
    for event in events:
        functions_before = store.functions()
        changed = await asyncio.to_thread(watcher.apply, event, store)
        if not changed:
            continue
        if store.functions() != functions_before:
            await hub.broadcast(hub.functions_message())
        if event.kind == REMOVED:
            await hub.broadcast(hub.years_message(event.key.function))
        else:
            await hub.broadcast_update(event.key)


def create_app(
    store: DatasetStore | None = None,
    data_dir: str | Path = DATA_DIR,
    watch: bool = True,
    load: bool = True,
) -> FastAPI:
    """Build the FastAPI application around one DatasetStore.

    Parameters
    ----------
    store : Store to serve; a new one is created when omitted.
    data_dir : Directory holding the input workbooks.
    watch : Start the file watcher with the app.
    load : Load every discovered workbook at startup.
    """
    store = store if store is not None else DatasetStore()
    data_dir = Path(data_dir)
    hub = ConnectionHub(store)
    watcher = FileWatcher(data_dir)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        if load:
            await asyncio.to_thread(load_all, store, data_dir)
        task = None
        if watch:
            watcher.prime()
            task = asyncio.create_task(watch_loop(watcher, store, hub))
            logger.info("Watching for changes in %s", data_dir)
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    app = FastAPI(title="OKR Dashboard API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store
    app.state.hub = hub

    def _error(status: int, message: str, **extra) -> JSONResponse:
        return JSONResponse(status_code=status, content={"error": message, **extra})

    @app.get("/api/functions")
    def functions() -> dict:
        return {
            "functions": store.functions(),
            "defaultFunction": store.default_function(),
        }

    @app.get("/api/years")
    def years(function: str | None = None) -> dict:
        func = (function or store.default_function() or "").upper()
        return {
            "function": func,
            "years": store.years(func),
            "defaultYear": store.default_year(func),
        }

    @app.get("/api/data")
    def data(function: str | None = None, fy: str | None = None):
        func = (function or store.default_function() or "").upper()
        if not func:
            return _error(500, "No function data available")

        requested = fy or store.default_year(func)
        if not requested:
            return _error(500, f"No FY data available for {func}")

        key = DatasetKey(func, requested)
        if key not in store:
            path = discover_files(data_dir).get(key)
            if path is not None:
                refresh(store, key, path, retries=0)

        dataset = store.get(key)
        if dataset is None:
            return _error(404, f"No data found for {func} {requested}")
        return dataset.to_dict()

    @app.get("/api/health")
    def health() -> dict:
        details: dict[str, dict[str, str]] = {}
        for key, path in discover_files(data_dir).items():
            details.setdefault(key.function, {})[key.fiscal_year] = path.name
        return {
            "status": "ok",
            "availableFunctions": store.functions(),
            "defaultFunction": store.default_function(),
            "details": details,
            "lastParsed": datetime.now().isoformat(),
        }

    @app.get("/api/rag")
    def rag_metrics(function: str | None = None, fy: str | None = None):
        func = (function or store.default_function() or "").upper()
        requested = fy or store.default_year(func)
        dataset = store.get(DatasetKey(func, requested)) if requested else None
        if dataset is None:
            return _error(404, f"No data found for {func} {requested}")
        return dataset.to_dict().get("ragMetrics", {})

    @app.post("/api/rag")
    async def update_rag(body: RagUpdate):
        if not (body.function and body.fy and body.key and body.value):
            return _error(400, "Missing required fields: function, fy, key, value")

        func = body.function.upper()
        key = DatasetKey(func, body.fy)
        path = discover_files(data_dir).get(key)
        if path is None or not path.exists():
            return _error(404, f"No Excel file found for {func} {body.fy}")

        try:
            value = await asyncio.to_thread(update_rag_metric, path, body.key, body.value)
        except ValueError as exc:
            return _error(400, str(exc))
        except KeyError as exc:
            return _error(404, exc.args[0])
        except (OSError, WorkbookReadError) as exc:
            logger.exception("RAG update error for %s", path.name)
            return _error(500, "Failed to update RAG metric", details=str(exc))

        if await asyncio.to_thread(refresh, store, key, path):
            await hub.broadcast_update(key)

        return {"success": True, "function": func, "fy": body.fy, "key": body.key, "value": value}

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        await hub.connect(ws)
        try:
            while True:
                await ws.receive_text()
        except WebSocketDisconnect:
            hub.disconnect(ws)

    return app
