from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorEnvelope(BaseModel):
    code: str
    message: str


class LintOptions(BaseModel):
    markdown: bool = True
    vuepress_containers: bool = True
    unify_punctuation: bool = True
    space_full_width_content: bool = True
    space_punctuation: bool = True
    space_brackets: bool = True
    space_quotes: bool = True
    space_hyper_marks: bool = True
    case_datetime: bool = True


class LintRequest(BaseModel):
    text: str
    options: LintOptions = Field(default_factory=LintOptions)


class LintResponse(BaseModel):
    text: str
    changed: bool
    stats: dict[str, int]


class RuleOut(BaseModel):
    name: str
    option: str
    default_enabled: bool


class RuleListResponse(BaseModel):
    rules: list[RuleOut]
