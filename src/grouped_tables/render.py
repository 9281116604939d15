"""Render entry point: request in, table model or message out.

A render is all-or-nothing.  Missing dimensions or measures produce a short
advisory message; any other failure is logged and replaced by an inline error
message.  No partial model is ever returned and nothing is retried.

Usage:
    python -m grouped_tables.render request.json
    python -m grouped_tables.render request.json --html
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from grouped_tables.assembler import MissingFieldsError, assemble_table
from grouped_tables.config import resolve_config
from grouped_tables.html_table import message_html, to_html
from grouped_tables.schema import RenderRequest, RenderResult

logger = logging.getLogger(__name__)


def render(request: RenderRequest) -> RenderResult:
    """Resolve options and assemble the table for one request."""
    try:
        config = resolve_config(request.dimension_fields, request.config)
        model = assemble_table(request, config)
    except MissingFieldsError as exc:
        logger.info("Render skipped: %s", exc)
        return RenderResult(message=str(exc))
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Render failed: %s", exc)
        return RenderResult(message=f"Error rendering table: {exc}")
    return RenderResult(model=model)


def render_payload(payload: dict) -> RenderResult:
    """Validate a raw JSON payload and render it, reporting bad payloads as a message."""
    try:
        request = RenderRequest.model_validate(payload)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Invalid render request: %s", exc)
        return RenderResult(message=f"Error rendering table: {exc}")
    return render(request)


def render_html(request: RenderRequest) -> str:
    """Render straight to an HTML fragment (table, or message paragraph)."""
    result = render(request)
    if result.model is None:
        return message_html(result.message or "")
    return to_html(result.model)


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point; prints model JSON (or HTML) for a request file."""
    parser = argparse.ArgumentParser(description="Render a grouped table from a request JSON file.")
    parser.add_argument("request", type=Path, help="Path to a RenderRequest JSON file")
    parser.add_argument("--html", action="store_true", help="Print an HTML table instead of model JSON")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    with open(args.request, "r", encoding="utf-8") as fopen:
        payload = json.load(fopen)

    result = render_payload(payload)
    if args.html:
        print(to_html(result.model) if result.model is not None else message_html(result.message or ""))
    else:
        print(result.model_dump_json(indent=2))
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
