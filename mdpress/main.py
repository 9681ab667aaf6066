from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Any, Optional

from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.responses import HTMLResponse, Response

from . import db, pdf_export
from .converter import markdown_to_html, render_document
from .print_engine import PrintEngineUnavailableError
from .rules import FormattingRule
from .schemas import ConvertRequest, RuleCreate, RuleUpdate
from .settings import settings
from .tree import document_title, parse_markdown


logger = logging.getLogger(__name__)

app = FastAPI(title="Markdown to PDF")


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(level=settings.log_level)
    await db.init_db(settings.db_path)


def _owner(x_owner_id: Optional[int]) -> int:
    return x_owner_id if x_owner_id is not None else settings.default_owner_id


def _safe_filename(name: str) -> str:
    cleaned = "".join(c for c in name if c.isalnum() or c in (" ", "-", "_"))
    cleaned = "-".join(cleaned.strip().split())
    return cleaned[:120] or "document"


async def _get_owned_rule(rule_id: int, owner_id: int) -> db.StoredRule:
    stored = await db.get_rule(settings.db_path, rule_id)
    if stored is None or stored.user_id != owner_id:
        raise HTTPException(status_code=404, detail="Formatting rule not found")
    return stored


async def _resolve_rule(payload: ConvertRequest, owner_id: int) -> FormattingRule:
    if payload.rule_id is None:
        return payload.to_rule()
    stored = await _get_owned_rule(payload.rule_id, owner_id)
    return stored.rule


async def _convert(payload: ConvertRequest, owner_id: int) -> tuple[bytes, int, db.Conversion]:
    rule = await _resolve_rule(payload, owner_id)
    root = parse_markdown(payload.markdown)
    markdown_size = len(payload.markdown.encode("utf-8"))
    conversion = await db.create_conversion(
        settings.db_path,
        owner_id,
        markdown_size=markdown_size,
        formatting_rule_id=payload.rule_id,
        markdown_title=document_title(root),
    )

    async def _fail(message: str) -> None:
        # The print error is what the client sees, even if recording it fails.
        try:
            await db.update_conversion(settings.db_path, conversion.id, status="failed", error_message=message)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Failed to record failure of conversion {conversion.id}: {e}", exc_info=True)

    start = time.monotonic()
    try:
        pdf_bytes = await asyncio.wait_for(
            pdf_export.generate_pdf_from_html(render_document(root, rule), rule),
            timeout=settings.pdf_timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        await _fail("PDF generation timed out")
        raise HTTPException(status_code=504, detail="PDF generation timed out") from exc
    except PrintEngineUnavailableError as exc:
        await _fail(str(exc))
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        await _fail(str(exc))
        raise HTTPException(status_code=500, detail=f"PDF generation failed: {exc}") from exc

    generation_time = int((time.monotonic() - start) * 1000)
    await db.update_conversion(
        settings.db_path,
        conversion.id,
        status="completed",
        pdf_size=len(pdf_bytes),
        generation_time_ms=generation_time,
    )
    logger.info(f"[Conversion] User {owner_id} converted {markdown_size} bytes in {generation_time}ms")
    return pdf_bytes, generation_time, conversion


@app.post("/convert")
async def convert(payload: ConvertRequest, x_owner_id: Optional[int] = Header(default=None)) -> dict[str, Any]:
    pdf_bytes, generation_time, conversion = await _convert(payload, _owner(x_owner_id))
    pdf_data_url = "data:application/pdf;base64," + base64.b64encode(pdf_bytes).decode("ascii")
    return {
        "success": True,
        "pdfUrl": pdf_data_url,
        "generationTimeMs": generation_time,
        "conversionId": conversion.id,
    }


@app.post("/convert.pdf")
async def convert_pdf(payload: ConvertRequest, x_owner_id: Optional[int] = Header(default=None)) -> Response:
    pdf_bytes, _, conversion = await _convert(payload, _owner(x_owner_id))
    filename = _safe_filename(conversion.markdown_title or "document") + ".pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@app.post("/preview", response_class=HTMLResponse)
async def preview(payload: ConvertRequest, x_owner_id: Optional[int] = Header(default=None)) -> Response:
    rule = await _resolve_rule(payload, _owner(x_owner_id))
    return HTMLResponse(markdown_to_html(payload.markdown, rule))


@app.get("/rules")
async def list_rules(x_owner_id: Optional[int] = Header(default=None)) -> list[dict[str, Any]]:
    rules = await db.list_rules(settings.db_path, _owner(x_owner_id))
    return [stored.to_dict() for stored in rules]


@app.post("/rules", status_code=201)
async def create_rule(payload: RuleCreate, x_owner_id: Optional[int] = Header(default=None)) -> dict[str, Any]:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Rule name is required")
    stored = await db.create_rule(
        settings.db_path,
        _owner(x_owner_id),
        name,
        payload.rule_values(),
        description=payload.description,
        is_preset=bool(payload.is_preset),
    )
    return stored.to_dict()


@app.get("/rules/{rule_id}")
async def get_rule(rule_id: int, x_owner_id: Optional[int] = Header(default=None)) -> dict[str, Any]:
    stored = await _get_owned_rule(rule_id, _owner(x_owner_id))
    return stored.to_dict()


@app.put("/rules/{rule_id}")
async def update_rule(
    rule_id: int,
    payload: RuleUpdate,
    x_owner_id: Optional[int] = Header(default=None),
) -> dict[str, Any]:
    await _get_owned_rule(rule_id, _owner(x_owner_id))
    stored = await db.update_rule(
        settings.db_path,
        rule_id,
        payload.rule_values(),
        name=payload.name,
        description=payload.description,
        is_preset=payload.is_preset,
    )
    if stored is None:
        raise HTTPException(status_code=404, detail="Formatting rule not found")
    return stored.to_dict()


@app.delete("/rules/{rule_id}")
async def delete_rule(rule_id: int, x_owner_id: Optional[int] = Header(default=None)) -> dict[str, Any]:
    await _get_owned_rule(rule_id, _owner(x_owner_id))
    deleted = await db.delete_rule(settings.db_path, rule_id)
    return {"deleted": deleted}


@app.get("/conversions")
async def list_conversions(
    limit: int = Query(default=50, ge=1, le=200),
    x_owner_id: Optional[int] = Header(default=None),
) -> list[dict[str, Any]]:
    conversions = await db.list_conversions(settings.db_path, _owner(x_owner_id), limit=limit)
    return [conversion.to_dict() for conversion in conversions]
