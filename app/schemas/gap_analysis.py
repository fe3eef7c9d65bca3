from __future__ import annotations

import html
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.config import settings

CacheSource = Literal["memory", "database", "ai"]

_HTML_ELEMENTS = (
    "a", "abbr", "address", "article", "aside", "b", "blockquote", "body", "br", "button",
    "caption", "center", "code", "col", "colgroup", "dd", "div", "dl", "dt", "em", "embed",
    "font", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "head", "header", "hr",
    "html", "i", "iframe", "img", "input", "label", "li", "link", "main", "meta", "nav",
    "object", "ol", "option", "p", "pre", "s", "script", "section", "select", "small",
    "span", "strong", "style", "sub", "sup", "svg", "table", "tbody", "td", "textarea",
    "tfoot", "th", "thead", "title", "tr", "u", "ul",
)
_TAG_NAME = "(?:%s)" % "|".join(sorted(_HTML_ELEMENTS, key=len, reverse=True))
# Known element names only. A tag with attributes must not follow a word
# character, so "a<b and x>y" and "vector<int>" stay intact.
_TAG_RE = re.compile(
    r"<!--.*?-->|</?%s\s*/?>|(?<!\w)<%s\s[^<>]*>" % (_TAG_NAME, _TAG_NAME),
    re.DOTALL,
)
_SCRIPT_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)


def sanitize_markup(value: str) -> str:
    text = _SCRIPT_RE.sub(" ", value)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    # unescaping can reintroduce tags from encoded input
    text = _TAG_RE.sub(" ", text)
    return text.strip()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisRequest(_CamelModel):
    resume: str = Field(
        min_length=settings.resume_min_chars,
        max_length=settings.resume_max_chars,
    )
    job_description: str = Field(
        min_length=settings.job_description_min_chars,
        max_length=settings.job_description_max_chars,
    )

    @field_validator("resume", "job_description", mode="before")
    @classmethod
    def _strip_markup(cls, value: Any) -> Any:
        if isinstance(value, str):
            return sanitize_markup(value)
        return value


class AnalysisResult(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, strict=True)

    missing_skills: list[str]
    steps: str
    interview_questions: str


class AnalysisMetadata(_CamelModel):
    processing_time: int
    cache_source: CacheSource
    model: str | None = None
    timestamp: str
    version: str


class AnalysisResponse(AnalysisResult):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, strict=False)

    cached: bool
    metadata: AnalysisMetadata


class HistoryItem(BaseModel):
    id: int
    created_at: str
    resume_preview: str
    jd_preview: str
    result_json: AnalysisResult
