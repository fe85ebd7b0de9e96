"""Dataset export: JSON, Markdown and training-data renderings of a collected corpus."""

import json
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from .classifier import priority_description
from .models import Celebrity, ContentItem, ExportResult
from .payloads import celebrity_to_dict, content_to_dict
from .render import render

EXPORT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

GROUP_CHOICES = ("priority", "source")


def build_export(
    celebrity: Celebrity,
    contents: List[ContentItem],
    now: Optional[datetime] = None,
) -> ExportResult:
    sources = list(dict.fromkeys(c.source for c in contents))
    distribution = Counter(c.priority for c in contents)
    return ExportResult(
        celebrity=celebrity,
        export_date=(now or datetime.now()).strftime(EXPORT_DATE_FORMAT),
        total_items=len(contents),
        sources=sources,
        priority_distribution=dict(sorted(distribution.items())),
        contents=list(contents),
    )


def _group(contents: List[ContentItem], group_by: str) -> Dict[object, List[ContentItem]]:
    if group_by not in GROUP_CHOICES:
        raise ValueError(f"group_by must be one of {GROUP_CHOICES}, got {group_by!r}")
    grouped: Dict[object, List[ContentItem]] = {}
    for item in contents:
        key = item.priority if group_by == "priority" else item.source
        grouped.setdefault(key, []).append(item)
    return grouped


def _metadata(result: ExportResult) -> dict:
    return {
        "export_date": result.export_date,
        "total_items": result.total_items,
        "sources": result.sources,
        "priority_distribution": {str(k): v for k, v in result.priority_distribution.items()},
    }


def to_json(result: ExportResult, group_by: Optional[str] = None) -> str:
    if group_by:
        contents = {
            str(key): [content_to_dict(i) for i in items]
            for key, items in _group(result.contents, group_by).items()
        }
    else:
        contents = [content_to_dict(i) for i in result.contents]

    payload = {
        "celebrity": celebrity_to_dict(result.celebrity),
        "metadata": _metadata(result),
        "contents": contents,
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def to_markdown(result: ExportResult, group_by: Optional[str] = None) -> str:
    if group_by:
        grouped = _group(result.contents, group_by)
        if group_by == "priority":
            sections = [(priority_description(k), v) for k, v in sorted(grouped.items())]
        else:
            sections = [(f"Source: {k}", v) for k, v in grouped.items()]
    else:
        sections = [("Contents", sorted(result.contents, key=lambda c: c.priority))]

    return render(
        "export.md.j2",
        result=result,
        priority_labels=[(priority_description(p), n) for p, n in result.priority_distribution.items()],
        sections=sections,
    )


def to_training_json(result: ExportResult) -> str:
    """Priority-ordered records for downstream agent training."""
    records = [
        {
            "text": item.content,
            "source": item.source,
            "type": item.content_type,
            "priority": item.priority,
            "weight": item.weight,
            "date": item.date.isoformat() if item.date else None,
            "metadata": {
                "title": item.title,
                "url": item.source_url,
                "author": item.author,
            },
        }
        for item in sorted(result.contents, key=lambda c: c.priority)
    ]
    payload = {
        "celebrity": {"name": result.celebrity.name, "aliases": result.celebrity.aliases},
        "training_data": records,
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)
