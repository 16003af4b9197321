"""
Prompt rendering.

Templates ship inside the package (see package-data in pyproject.toml) and
are looked up by the names declared on Template. A missing file fails at
import rather than on the first user message that needs it.
"""

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .templates import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"
SUFFIX = ".jinja2"


def declared_templates() -> list[str]:
    return [value for key, value in vars(Template).items() if not key.startswith("_")]


_missing = [name for name in declared_templates() if not (TEMPLATES_DIR / f"{name}{SUFFIX}").exists()]
if _missing:
    raise FileNotFoundError(f"Prompt templates missing from {TEMPLATES_DIR}: {_missing}")


@lru_cache(maxsize=1)
def _environment() -> Environment:
    # Prompts are plain text; undefined variables are bugs, not blanks.
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render(template_name: str, **context) -> str:
    """Renders the named prompt with the given variables."""
    return _environment().get_template(f"{template_name}{SUFFIX}").render(**context)
