from pathlib import Path

import yaml
from pydantic import BaseModel


class TemplateSection(BaseModel):
    id: str
    label: str
    required: bool = True
    fields: list[str] | None = None
    max_length: int | None = None
    content_type: str | None = None  # "paragraph", "entries", "list", "categorized_list"
    sort_order: str | None = None


class TemplateHeader(BaseModel):
    name_line: str
    contact_lines: str


class ResumeTemplate(BaseModel):
    name: str
    description: str = ""
    header: TemplateHeader
    sections: list[TemplateSection]


TEMPLATES_DIR = Path(__file__).parent


def load_template(name: str) -> ResumeTemplate:
    """Load a template by name from the templates directory."""
    path = TEMPLATES_DIR / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Template not found: {name}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return ResumeTemplate(**data)


def list_templates() -> list[str]:
    """List available template names."""
    return sorted(p.stem for p in TEMPLATES_DIR.glob("*.yaml"))
