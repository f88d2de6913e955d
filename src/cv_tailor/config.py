"""Application configuration loaded from config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

STORAGE_BACKENDS = ("supabase", "local")


@dataclass(frozen=True)
class LLMConfig:
    extraction_model: str = "claude-haiku-4-5-20251001"
    tailoring_model: str = "claude-sonnet-4-5-20250929"
    temperature: float = 0.3
    max_tokens: int = 8192
    timeout: int | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"temperature must be between 0 and 1, got {self.temperature}")
        if self.max_tokens < 256:
            raise ValueError(f"max_tokens must be at least 256, got {self.max_tokens}")
        if self.timeout is not None and self.timeout < 1:
            raise ValueError(f"timeout must be at least 1 second, got {self.timeout}")


@dataclass(frozen=True)
class StorageConfig:
    backend: str = "supabase"
    artifact_bucket: str = "tailored-resumes"
    fallback_bucket: str = "resumes"
    records_table: str = "tailored_resumes"
    local_root: str = "~/.cv-tailor"

    def __post_init__(self) -> None:
        if self.backend not in STORAGE_BACKENDS:
            raise ValueError(f"backend must be one of {STORAGE_BACKENDS}, got {self.backend!r}")

    @property
    def resolved_local_root(self) -> Path:
        return Path(self.local_root).expanduser()


@dataclass(frozen=True)
class PipelineConfig:
    min_extracted_chars: int = 10
    min_tailored_chars: int = 50
    max_inline_text_chars: int = 100_000
    template: str = "standard"

    def __post_init__(self) -> None:
        if self.min_extracted_chars < 1:
            raise ValueError(f"min_extracted_chars must be positive, got {self.min_extracted_chars}")
        if self.min_tailored_chars < 1:
            raise ValueError(f"min_tailored_chars must be positive, got {self.min_tailored_chars}")
        if self.max_inline_text_chars < 1_000:
            raise ValueError(
                f"max_inline_text_chars must be at least 1000, got {self.max_inline_text_chars}"
            )


@dataclass(frozen=True)
class RenderConfig:
    page_width: float = 612.0
    page_height: float = 792.0
    margin: float = 56.0
    line_gap: float = 5.0

    def __post_init__(self) -> None:
        if self.margin <= 0 or self.margin * 2 >= min(self.page_width, self.page_height):
            raise ValueError(f"margin does not fit the page: {self.margin}")
        if self.line_gap < 0:
            raise ValueError(f"line_gap must not be negative, got {self.line_gap}")


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    render: RenderConfig = field(default_factory=RenderConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        storage=StorageConfig(**raw.get("storage", {})),
        pipeline=PipelineConfig(**raw.get("pipeline", {})),
        render=RenderConfig(**raw.get("render", {})),
    )
