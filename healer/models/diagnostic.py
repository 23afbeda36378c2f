"""
Diagnostic Model
================
Pydantic model for one compiler-reported issue.
This is the contract between the parser and all downstream consumers.

Fields:
    file        — path as reported, normalised to forward slashes
    line        — 1-based line number
    column      — 1-based column number
    code        — categorical identifier (e.g. "TS6133")
    message     — free text from the compiler
    raw_line    — the original output line (debugging only)

Frozen: a Diagnostic never changes after parsing.
"""
from pydantic import BaseModel, ConfigDict, Field


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str = Field(min_length=1)
    line: int = Field(ge=1)
    column: int = Field(default=1, ge=1)
    code: str = Field(min_length=1)
    message: str = ""
    raw_line: str = ""
