from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import aiosqlite

from .rules import FormattingRule


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# (column, record key) pairs for the rule fields of formatting_rules.
_RULE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("font_family", "fontFamily"),
    ("font_size", "fontSize"),
    ("line_height", "lineHeight"),
    ("heading_styles", "headingStyles"),
    ("page_size", "pageSize"),
    ("margin_top", "marginTop"),
    ("margin_bottom", "marginBottom"),
    ("margin_left", "marginLeft"),
    ("margin_right", "marginRight"),
    ("header_text", "headerText"),
    ("footer_text", "footerText"),
    ("code_block_styles", "codeBlockStyles"),
    ("table_styles", "tableStyles"),
    ("page_break_before_headings", "pageBreakBeforeHeadings"),
    ("prevent_orphan_headings", "preventOrphanHeadings"),
    ("keep_code_blocks_together", "keepCodeBlocksTogether"),
)
_JSON_COLUMNS = {"heading_styles", "code_block_styles", "table_styles"}
_BOOL_COLUMNS = {"prevent_orphan_headings", "keep_code_blocks_together"}

CONVERSION_STATUSES = ("pending", "completed", "failed")


@dataclass
class StoredRule:
    id: int
    user_id: int
    name: str
    description: Optional[str]
    rule: FormattingRule
    is_preset: bool
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "description": self.description,
            **self.rule.to_mapping(),
            "isPreset": self.is_preset,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class Conversion:
    id: int
    user_id: int
    formatting_rule_id: Optional[int]
    markdown_title: Optional[str]
    markdown_size: int
    pdf_url: Optional[str]
    pdf_size: Optional[int]
    generation_time_ms: Optional[int]
    status: str
    error_message: Optional[str]
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "formattingRuleId": self.formatting_rule_id,
            "markdownTitle": self.markdown_title,
            "markdownSize": self.markdown_size,
            "pdfUrl": self.pdf_url,
            "pdfSize": self.pdf_size,
            "generationTimeMs": self.generation_time_ms,
            "status": self.status,
            "errorMessage": self.error_message,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


async def init_db(db_path: str) -> None:
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS formatting_rules (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              user_id INTEGER NOT NULL,
              name TEXT NOT NULL,
              description TEXT,
              font_family TEXT NOT NULL,
              font_size INTEGER NOT NULL,
              line_height TEXT NOT NULL,
              heading_styles TEXT NOT NULL,
              page_size TEXT NOT NULL,
              margin_top INTEGER NOT NULL,
              margin_bottom INTEGER NOT NULL,
              margin_left INTEGER NOT NULL,
              margin_right INTEGER NOT NULL,
              header_text TEXT,
              footer_text TEXT,
              code_block_styles TEXT NOT NULL,
              table_styles TEXT NOT NULL,
              page_break_before_headings TEXT NOT NULL,
              prevent_orphan_headings INTEGER NOT NULL,
              keep_code_blocks_together INTEGER NOT NULL,
              is_preset INTEGER NOT NULL DEFAULT 0,
              created_at TEXT NOT NULL,
              updated_at TEXT NOT NULL
            )
            """
        )
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS conversions (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              user_id INTEGER NOT NULL,
              formatting_rule_id INTEGER,
              markdown_title TEXT,
              markdown_size INTEGER NOT NULL,
              pdf_url TEXT,
              pdf_size INTEGER,
              generation_time_ms INTEGER,
              status TEXT NOT NULL,
              error_message TEXT,
              created_at TEXT NOT NULL,
              updated_at TEXT NOT NULL
            )
            """
        )
        await db.execute("CREATE INDEX IF NOT EXISTS idx_formatting_rules_user_id ON formatting_rules(user_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_conversions_user_id ON conversions(user_id)")
        await db.commit()


def _rule_values(rule: FormattingRule) -> list[Any]:
    mapping = rule.to_mapping()
    values: list[Any] = []
    for column, key in _RULE_COLUMNS:
        value = mapping[key]
        if column in _JSON_COLUMNS:
            value = json.dumps(value)
        elif column in _BOOL_COLUMNS:
            value = 1 if value else 0
        values.append(value)
    return values


def _row_to_rule(row: aiosqlite.Row) -> StoredRule:
    record: dict[str, Any] = {}
    for column, key in _RULE_COLUMNS:
        value = row[column]
        if column in _JSON_COLUMNS:
            value = json.loads(value) if value else None
        elif column in _BOOL_COLUMNS:
            value = bool(value)
        record[key] = value
    return StoredRule(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        name=row["name"],
        description=row["description"],
        rule=FormattingRule().with_values(record),
        is_preset=bool(row["is_preset"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_conversion(row: aiosqlite.Row) -> Conversion:
    return Conversion(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        formatting_rule_id=row["formatting_rule_id"],
        markdown_title=row["markdown_title"],
        markdown_size=int(row["markdown_size"]),
        pdf_url=row["pdf_url"],
        pdf_size=row["pdf_size"],
        generation_time_ms=row["generation_time_ms"],
        status=row["status"],
        error_message=row["error_message"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


async def create_rule(
    db_path: str,
    user_id: int,
    name: str,
    values: Mapping[str, Any],
    *,
    description: Optional[str] = None,
    is_preset: bool = False,
) -> StoredRule:
    """Store a rule; fields missing from ``values`` are back-filled with defaults."""
    rule = FormattingRule.from_mapping(values)
    now = _utc_now_iso()
    columns = ["user_id", "name", "description", *(c for c, _ in _RULE_COLUMNS), "is_preset", "created_at", "updated_at"]
    params = [user_id, name.strip(), description or None, *_rule_values(rule), 1 if is_preset else 0, now, now]
    placeholders = ", ".join("?" for _ in columns)
    async with aiosqlite.connect(db_path) as db:
        cur = await db.execute(
            f"INSERT INTO formatting_rules ({', '.join(columns)}) VALUES ({placeholders})",
            tuple(params),
        )
        rule_id = cur.lastrowid
        await db.commit()
    return StoredRule(
        id=int(rule_id),
        user_id=user_id,
        name=name.strip(),
        description=description or None,
        rule=rule,
        is_preset=is_preset,
        created_at=now,
        updated_at=now,
    )


async def get_rule(db_path: str, rule_id: int) -> Optional[StoredRule]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute("SELECT * FROM formatting_rules WHERE id = ?", (rule_id,)) as cur:
            row = await cur.fetchone()
            if row is None:
                return None
            return _row_to_rule(row)


async def list_rules(db_path: str, user_id: int) -> list[StoredRule]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            "SELECT * FROM formatting_rules WHERE user_id = ? ORDER BY id ASC",
            (user_id,),
        ) as cur:
            rows = await cur.fetchall()
            return [_row_to_rule(row) for row in rows]


async def update_rule(
    db_path: str,
    rule_id: int,
    values: Mapping[str, Any],
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    is_preset: Optional[bool] = None,
) -> Optional[StoredRule]:
    existing = await get_rule(db_path, rule_id)
    if existing is None:
        return None

    # Only the fields sent are changed; explicit 0 or "" is stored as given.
    rule = existing.rule.with_values(values)

    fields = [f"{column} = ?" for column, _ in _RULE_COLUMNS]
    params: list[Any] = _rule_values(rule)
    if name is not None:
        fields.append("name = ?")
        params.append(name.strip())
    if description is not None:
        fields.append("description = ?")
        params.append(description or None)
    if is_preset is not None:
        fields.append("is_preset = ?")
        params.append(1 if is_preset else 0)
    fields.append("updated_at = ?")
    params.append(_utc_now_iso())
    params.append(rule_id)

    async with aiosqlite.connect(db_path) as db:
        await db.execute(f"UPDATE formatting_rules SET {', '.join(fields)} WHERE id = ?", tuple(params))
        await db.commit()
    return await get_rule(db_path, rule_id)


async def delete_rule(db_path: str, rule_id: int) -> bool:
    async with aiosqlite.connect(db_path) as db:
        cur = await db.execute("DELETE FROM formatting_rules WHERE id = ?", (rule_id,))
        await db.commit()
        return cur.rowcount > 0


async def create_conversion(
    db_path: str,
    user_id: int,
    *,
    markdown_size: int,
    formatting_rule_id: Optional[int] = None,
    markdown_title: Optional[str] = None,
    status: str = "pending",
) -> Conversion:
    now = _utc_now_iso()
    async with aiosqlite.connect(db_path) as db:
        cur = await db.execute(
            """
            INSERT INTO conversions (
              user_id, formatting_rule_id, markdown_title, markdown_size,
              pdf_url, pdf_size, generation_time_ms, status, error_message, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, NULL, NULL, NULL, ?, NULL, ?, ?)
            """,
            (user_id, formatting_rule_id, markdown_title, markdown_size, status, now, now),
        )
        conversion_id = cur.lastrowid
        await db.commit()
    return Conversion(
        id=int(conversion_id),
        user_id=user_id,
        formatting_rule_id=formatting_rule_id,
        markdown_title=markdown_title,
        markdown_size=markdown_size,
        pdf_url=None,
        pdf_size=None,
        generation_time_ms=None,
        status=status,
        error_message=None,
        created_at=now,
        updated_at=now,
    )


async def update_conversion(
    db_path: str,
    conversion_id: int,
    *,
    status: Optional[str] = None,
    pdf_url: Optional[str] = None,
    pdf_size: Optional[int] = None,
    generation_time_ms: Optional[int] = None,
    error_message: Optional[str] = None,
) -> None:
    fields: list[str] = []
    values: list[Any] = []
    if status is not None:
        if status not in CONVERSION_STATUSES:
            raise ValueError(f"Invalid conversion status: {status}")
        fields.append("status = ?")
        values.append(status)
    if pdf_url is not None:
        fields.append("pdf_url = ?")
        values.append(pdf_url)
    if pdf_size is not None:
        fields.append("pdf_size = ?")
        values.append(pdf_size)
    if generation_time_ms is not None:
        fields.append("generation_time_ms = ?")
        values.append(generation_time_ms)
    if error_message is not None:
        fields.append("error_message = ?")
        values.append(error_message)

    fields.append("updated_at = ?")
    values.append(_utc_now_iso())

    sql = f"UPDATE conversions SET {', '.join(fields)} WHERE id = ?"
    values.append(conversion_id)

    async with aiosqlite.connect(db_path) as db:
        await db.execute(sql, tuple(values))
        await db.commit()


async def get_conversion(db_path: str, conversion_id: int) -> Optional[Conversion]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute("SELECT * FROM conversions WHERE id = ?", (conversion_id,)) as cur:
            row = await cur.fetchone()
            if row is None:
                return None
            return _row_to_conversion(row)


async def list_conversions(db_path: str, user_id: int, limit: int = 50) -> list[Conversion]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            """
            SELECT * FROM conversions
            WHERE user_id = ?
            ORDER BY created_at ASC, id ASC
            LIMIT ?
            """,
            (user_id, limit),
        ) as cur:
            rows = await cur.fetchall()
            return [_row_to_conversion(row) for row in rows]
