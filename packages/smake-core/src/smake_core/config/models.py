from pydantic import BaseModel, Field
from typing import Literal


class ProjectConfig(BaseModel):
    file: str = "smake.yaml"
    root: str | None = None


class ReportConfig(BaseModel):
    verbose: bool = False
    fail_on_stale: bool = False
    fail_on_invalid: bool = False


class WatchConfig(BaseModel):
    debounce_seconds: float = Field(default=0.5, gt=0)
    ignore_patterns: list[str] = Field(default_factory=lambda: [".venv", "node_modules"])


class SmakeConfig(BaseModel):
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "warn"
