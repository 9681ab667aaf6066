from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .rules import DEFAULT_CODE_BLOCK_STYLES, DEFAULT_HEADING_STYLES, DEFAULT_TABLE_STYLES, FormattingRule


class ConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    markdown: str = Field(min_length=1)
    font_family: str = Field(default="Inter", alias="fontFamily")
    font_size: int = Field(default=12, alias="fontSize", ge=1)
    line_height: float = Field(default=1.5, alias="lineHeight", gt=0)
    page_size: str = Field(default="A4", alias="pageSize")
    margin_top: int = Field(default=20, alias="marginTop", ge=0)
    margin_bottom: int = Field(default=20, alias="marginBottom", ge=0)
    margin_left: int = Field(default=20, alias="marginLeft", ge=0)
    margin_right: int = Field(default=20, alias="marginRight", ge=0)
    rule_id: Optional[int] = Field(default=None, alias="ruleId")

    def to_rule(self) -> FormattingRule:
        return FormattingRule(
            font_family=self.font_family,
            font_size=self.font_size,
            line_height=str(self.line_height),
            heading_styles=DEFAULT_HEADING_STYLES,
            page_size=self.page_size,
            margin_top=self.margin_top,
            margin_bottom=self.margin_bottom,
            margin_left=self.margin_left,
            margin_right=self.margin_right,
            header_text=None,
            footer_text=None,
            code_block_styles=DEFAULT_CODE_BLOCK_STYLES,
            table_styles=DEFAULT_TABLE_STYLES,
            page_break_before_headings="h1",
            prevent_orphan_headings=True,
            keep_code_blocks_together=True,
        )


class RuleCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    is_preset: Optional[bool] = Field(default=None, alias="isPreset")
    font_family: Optional[str] = Field(default=None, alias="fontFamily", max_length=100)
    font_size: Optional[int] = Field(default=None, alias="fontSize", ge=1)
    line_height: Optional[str | float] = Field(default=None, alias="lineHeight")
    heading_styles: Optional[dict[str, dict[str, Any]]] = Field(default=None, alias="headingStyles")
    page_size: Optional[str] = Field(default=None, alias="pageSize", max_length=20)
    margin_top: Optional[int] = Field(default=None, alias="marginTop", ge=0)
    margin_bottom: Optional[int] = Field(default=None, alias="marginBottom", ge=0)
    margin_left: Optional[int] = Field(default=None, alias="marginLeft", ge=0)
    margin_right: Optional[int] = Field(default=None, alias="marginRight", ge=0)
    header_text: Optional[str] = Field(default=None, alias="headerText")
    footer_text: Optional[str] = Field(default=None, alias="footerText")
    code_block_styles: Optional[dict[str, Any]] = Field(default=None, alias="codeBlockStyles")
    table_styles: Optional[dict[str, Any]] = Field(default=None, alias="tableStyles")
    page_break_before_headings: Optional[Literal["h1", "h2", "none"]] = Field(
        default=None, alias="pageBreakBeforeHeadings"
    )
    prevent_orphan_headings: Optional[bool] = Field(default=None, alias="preventOrphanHeadings")
    keep_code_blocks_together: Optional[bool] = Field(default=None, alias="keepCodeBlocksTogether")

    def rule_values(self) -> dict[str, Any]:
        """Only the rule fields the client actually sent, keyed like stored records."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude={"name", "description", "is_preset"})


class RuleUpdate(RuleCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
