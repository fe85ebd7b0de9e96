from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape


TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

# Markdown exports cut each item's content at this many characters
CONTENT_LIMIT = 2000


def truncate_content(text: str, limit: int = CONTENT_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "...(truncated)"


def get_env() -> Environment:
    loader = FileSystemLoader(str(TEMPLATE_DIR))
    env = Environment(
        loader=loader,
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["truncate_content"] = truncate_content
    return env


def render(template_name: str, **context) -> str:
    return get_env().get_template(template_name).render(**context)
