import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import click

from .catalog import LOOKUPS, search_ebooks
from .classifier import classify, priority_description, rank_items
from .config import Settings, get_settings
from .coverage import analyze_coverage
from .dedup import merge_candidates
from .export import GROUP_CHOICES, build_export, to_json, to_markdown, to_training_json
from .models import (
    Celebrity,
    ContentItem,
    CoverageAnalysis,
    FilteredPaidResources,
    PaidResource,
    PriceComparison,
)
from .payloads import (
    content_to_dict,
    load_candidates,
    load_corpus,
    resource_to_dict,
    result_to_dict,
)
from .pricing import PriceLookupConfig, batch_price_comparison
from .recommend import filter_paid_resources, generate_report, user_message
from .sources import ADAPTERS, collect

log = logging.getLogger(__name__)


def _analyze(
    free_contents: Sequence[ContentItem],
    comparisons: Sequence[PriceComparison],
    settings: Settings,
) -> Tuple[FilteredPaidResources, CoverageAnalysis]:
    coverage = analyze_coverage(free_contents, settings.primary_content_threshold)
    result = filter_paid_resources(
        comparisons,
        free_contents,
        coverage,
        duplicate_threshold=settings.duplicate_threshold,
        relevance_floor=settings.relevance_floor,
    )
    result.report = generate_report(result, coverage)
    return result, coverage


def analyze_paid_resources(
    free_contents: Sequence[ContentItem],
    comparisons: Sequence[PriceComparison],
    settings: Optional[Settings] = None,
) -> FilteredPaidResources:
    """Coverage analysis, filtering and report for one subject's paid candidates."""
    result, _ = _analyze(free_contents, comparisons, settings or get_settings())
    return result


def recommend_paid_resources(
    free_contents: Sequence[ContentItem],
    candidates: List[PaidResource],
    lookups: Optional[Dict[str, PriceLookupConfig]] = None,
    settings: Optional[Settings] = None,
) -> Tuple[FilteredPaidResources, CoverageAnalysis]:
    """Full pipeline: merge repeated candidates, price them, then filter against the free corpus."""
    settings = settings or get_settings()
    merged = merge_candidates(candidates)
    log.info("Pricing %d candidates against %d free items", len(merged), len(free_contents))
    comparisons = batch_price_comparison(merged, lookups)
    return _analyze(free_contents, comparisons, settings)


def _read_json(path: str):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path} is not valid JSON: {e}")


def _write_or_echo(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Wrote {output}")
    else:
        click.echo(text)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL.")
@click.pass_context
def cli(ctx, log_level):
    """Collect, classify and curate material about a public figure."""
    settings = get_settings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@cli.command()
@click.option("--corpus", "corpus_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Free content JSON.")
@click.option("--candidates", "candidates_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Paid candidates JSON.")
@click.option("--lookup/--no-lookup", default=False, help="Query ebook platforms for candidates without prices.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the full result as JSON.")
@click.pass_obj
def recommend(settings, corpus_path, candidates_path, lookup, as_json):
    """Decide which paid candidates are worth buying given the free corpus."""
    try:
        contents = load_corpus(_read_json(corpus_path))
        candidates = load_candidates(_read_json(candidates_path))
    except ValueError as e:
        raise click.ClickException(str(e))

    result, coverage = recommend_paid_resources(
        contents, candidates, lookups=LOOKUPS if lookup else None, settings=settings,
    )

    if as_json:
        click.echo(json.dumps(result_to_dict(result, coverage), ensure_ascii=False, indent=2))
        return

    click.echo(result.report)
    click.echo("")
    for c in result.recommended:
        price = c.best_region_price
        cost = f"{price.converted_price:.2f} CNY on {price.platform.name}" if price else "no regional price"
        click.echo(f"  [{c.recommendation}] {c.resource.title} ({cost}): {c.recommendation_reason}")
    click.echo(user_message(result, coverage))


@cli.command("classify")
@click.argument("source")
@click.argument("content_type")
@click.option("--meta", multiple=True, help="Metadata flag as key=value, e.g. verified=true.")
def classify_cmd(source, content_type, meta):
    """Show the reliability tier for a SOURCE / CONTENT_TYPE pair."""
    metadata = {}
    for pair in meta:
        key, sep, value = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--meta")
        metadata[key] = value.strip().lower() in ("1", "true", "yes")

    priority, weight = classify(source, content_type, metadata)
    click.echo(f"priority={priority} weight={weight:.2f}")
    click.echo(priority_description(priority))


@cli.command()
@click.option("--corpus", "corpus_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Free content JSON.")
@click.option("--name", required=True, help="Subject name.")
@click.option("--alias", "aliases", multiple=True, help="Alternative name (repeatable).")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "markdown", "training"]))
@click.option("--group-by", default=None, type=click.Choice(list(GROUP_CHOICES)))
@click.option("--output", default=None, type=click.Path(dir_okay=False), help="Write to file instead of stdout.")
def export(corpus_path, name, aliases, fmt, group_by, output):
    """Export a collected corpus as a dataset."""
    try:
        contents = load_corpus(_read_json(corpus_path))
    except ValueError as e:
        raise click.ClickException(str(e))

    result = build_export(Celebrity(name=name, aliases=list(aliases)), contents)
    if fmt == "markdown":
        text = to_markdown(result, group_by)
    elif fmt == "training":
        text = to_training_json(result)
    else:
        text = to_json(result, group_by)
    _write_or_echo(text, output)


@cli.command("collect")
@click.argument("name")
@click.option("--alias", "aliases", multiple=True, help="Alternative name (repeatable).")
@click.option("--source", "sources", multiple=True, type=click.Choice(sorted(ADAPTERS)), help="Limit to these sources.")
@click.option("--max-items", default=20, type=int, help="Max items per source.")
@click.option("--workers", default=2, type=int, help="Number of parallel workers.")
@click.option("--ebooks", is_flag=True, default=False, help="Also list paid ebook candidates.")
@click.option("--output", default=None, type=click.Path(dir_okay=False), help="Write corpus JSON to file.")
@click.pass_obj
def collect_cmd(settings, name, aliases, sources, max_items, workers, ebooks, output):
    """Collect free content about NAME from the configured sources."""
    celebrity = Celebrity(name=name, aliases=list(aliases))
    items = rank_items(collect(celebrity, ADAPTERS, max_items, settings, names=sources or None, workers=workers))
    click.echo(f"Collected {len(items)} items for {name}", err=True)

    payload = {"contents": [content_to_dict(i) for i in items]}
    if ebooks:
        found = search_ebooks(celebrity, settings)
        payload["candidates"] = [resource_to_dict(r) for r in found]
        click.echo(f"Found {len(found)} paid ebook candidates", err=True)

    _write_or_echo(json.dumps(payload, ensure_ascii=False, indent=2), output)


if __name__ == "__main__":
    cli()
