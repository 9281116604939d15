"""FastAPI preview server for grouped-table rendering.

Accepts a RenderRequest as JSON and answers with the assembled TableModel, or
with an HTML fragment for quick visual checks.

Usage:
    python -m grouped_tables.web.app
    # => Uvicorn running on http://localhost:8000
"""

import logging
import os

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from grouped_tables.render import render, render_html
from grouped_tables.schema import RenderRequest, RenderResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

HOST = os.getenv("GROUPED_TABLES_HOST", "127.0.0.1")
PORT = int(os.getenv("GROUPED_TABLES_PORT", "8000"))

app = FastAPI(title="Grouped Tables")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health():
    return {"ok": True}


@app.post("/api/render", response_model=RenderResult)
async def render_table(request: RenderRequest) -> RenderResult:
    """Render a request to its table model (or advisory / error message)."""
    result = render(request)
    logger.info("Rendered request: ok=%s", result.ok)
    return result


@app.post("/api/render.html", response_class=HTMLResponse)
async def render_table_html(request: RenderRequest) -> HTMLResponse:
    """Render a request to an HTML fragment."""
    return HTMLResponse(render_html(request))


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main():
    """Start the web server via uvicorn."""
    import uvicorn  # pylint: disable=import-outside-toplevel

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
