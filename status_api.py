# status_api.py
"""Read-only HTTP view of the status store.

    GET /               HTML dashboard, one column per service
    GET /status         all services
    GET /status/{name}  one service, 404 if unknown
"""
import html
import logging
from typing import Any, Dict, Mapping

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse

from data import snapshot_to_dict
from service import ServiceStatus
from status_store import StatusStore

logger = logging.getLogger(__name__)

PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Service Status</title></head>
<body>
<table class="table">
<tr id="service_row">{services}</tr>
<tr id="status_row">{statuses}</tr>
</table>
</body>
</html>
"""


def render_dashboard(snapshot: Mapping[str, ServiceStatus]) -> str:
    """Renders the snapshot as a two-row table: names, then "Up" or "Down: <reason>"."""
    services = "<td>Service</td>"
    statuses = "<td>Status</td>"
    for name, status in sorted(snapshot.items()):
        services += f"<td>{html.escape(name)}</td>"
        if status.up:
            statuses += '<td><div class="alert alert-success">Up</div></td>'
        else:
            reason = html.escape(status.failure_reason)
            statuses += f'<td><div class="alert alert-danger">Down: {reason}</div></td>'
    return PAGE.format(services=services, statuses=statuses)


def create_app(store: StatusStore) -> FastAPI:
    app = FastAPI(title="Service Monitor")

    @app.get("/", response_class=HTMLResponse)
    async def dashboard() -> str:
        return render_dashboard(store.get())

    @app.get("/status")
    async def get_status() -> Dict[str, Dict[str, Any]]:
        return snapshot_to_dict(store.get())

    @app.get("/status/{name}")
    async def get_service_status(name: str) -> Dict[str, Any]:
        status = store.get().get(name)
        if status is None:
            raise HTTPException(status_code=404, detail=f"Unknown service: {name}")
        return status.to_dict()

    return app
