import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, List, Optional

import typer
from rich import print
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .analyzer import AnalysisGateway, InvalidQuery
from .backends import FileBackend
from .config import load_settings
from .connection import ConnectionStateError, ShopConnection
from .llm import AnthropicGenerator
from .models import FavoriteKeyword, KeywordAnalysis, KeywordList, ProductAnalysis, RankAnalysis, ShopAnalysis
from .profit import ProfitInputs, calculate_profit
from .store import FAVORITE_KEYS, CollectionStore, identity_of
from .workflows import KeywordComparison, bulk_analyze_keywords, compare_keywords, normalize_keywords

app = typer.Typer()
favorites_app = typer.Typer(help="Saved keyword, shop and product analyses.")
lists_app = typer.Typer(help="Named keyword lists.")
app.add_typer(favorites_app, name="favorites")
app.add_typer(lists_app, name="lists")

FAILED_ANALYSIS = "Failed to get analysis. The response might be invalid. Please try again."


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Log more (-v info, -vv debug)."),
):
    """Shopscope CLI entrypoint."""
    _setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit(code=0)


def _setup_logging(verbose: int) -> None:
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _build_store() -> CollectionStore:
    return CollectionStore(FileBackend(load_settings().data_dir))


def _build_gateway() -> AnalysisGateway:
    settings = load_settings()
    if not settings.api_key:
        print("[red]ANTHROPIC_API_KEY not found in environment.[/red]")
        raise typer.Exit(code=1)
    generator = AnthropicGenerator(
        api_key=settings.api_key,
        model=settings.model,
        max_tokens=settings.max_tokens,
    )
    return AnalysisGateway(generator)


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    try:
        return asyncio.run(coro)
    except InvalidQuery as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=2)


def _require_result(result: Any) -> Any:
    if result is None:
        print(f"[red]{FAILED_ANALYSIS}[/red]")
        raise typer.Exit(code=1)
    return result


def _print_list(title: str, items: list[str]) -> None:
    print(f"\n[bold]{title}[/bold]")
    if not items:
        print("- none")
        return
    for item in items:
        print(f"- {escape(item)}")


def _print_favorite_state(store: CollectionStore, kind: str, identity: str, toggle: Any | None) -> None:
    if toggle is not None:
        added = store.toggle_favorite(kind, toggle)
        state = "Added to" if added else "Removed from"
        print(f"\n[green]{state} favorites.[/green]")
    elif store.is_favorite(kind, identity):
        print("\n[yellow]★ In favorites[/yellow]")


def _print_keyword(keyword: str, analysis: KeywordAnalysis) -> None:
    print(f"[bold]Keyword analysis:[/bold] {escape(keyword)}")
    print(f"competition: {analysis.competition} | search volume: {analysis.search_volume} | intent: {analysis.buyer_intent}")
    print(
        f"competition score: {analysis.competition_score}/100 | "
        f"est. monthly searches: {analysis.estimated_monthly_searches:,}"
    )
    trend = " ".join(f"{point.month}:{point.value:g}" for point in analysis.historical_data)
    print(f"\n[bold]Last 12 months[/bold]\n{escape(trend)}")
    _print_list("Suggested tags", analysis.suggested_tags)
    _print_list("Long-tail keywords", analysis.long_tail_keywords)
    _print_list("Niche suggestions", analysis.niche_suggestions)
    _print_list("Product ideas", analysis.product_ideas)


def _print_shop(analysis: ShopAnalysis) -> None:
    print(f"[bold]Shop analysis:[/bold] {escape(analysis.shop_name)}")
    print(f"niche: {escape(analysis.niche)}")
    print(f"estimated monthly sales: {escape(analysis.estimated_monthly_sales)}")
    _print_list("Top keywords", analysis.top_keywords)
    _print_list("Strengths", analysis.strengths)
    _print_list("Areas for improvement", analysis.areas_for_improvement)


def _print_product(analysis: ProductAnalysis) -> None:
    print(f"[bold]Product analysis:[/bold] {escape(analysis.product_concept)}")
    print(f"title suggestion: {escape(analysis.title_suggestion)}")
    print(f"pricing suggestion: {escape(analysis.pricing_suggestion)}")
    print(f"category: {escape(analysis.category)}")

    metrics = Table(title="Listing metrics")
    metrics.add_column("Metric")
    metrics.add_column("Value")
    for label, value in (
        ("Monthly sales", analysis.monthly_sales),
        ("Monthly revenue", analysis.monthly_revenue),
        ("Total sales", f"{analysis.total_sales:g}"),
        ("Listing age", analysis.listing_age),
        ("Reviews", f"{analysis.reviews:g}"),
        ("Monthly reviews", analysis.monthly_reviews),
        ("Review ratio", analysis.review_ratio),
        ("Views", f"{analysis.views:g}"),
        ("Favorites", f"{analysis.favorites:g}"),
        ("Conversion rate", analysis.conversion_rate),
        ("Visibility score", analysis.visibility_score),
    ):
        metrics.add_row(label, escape(value))
    print(metrics)

    tags = Table(title="Tags")
    for column in ("Tag", "Volume", "Competition", "Score"):
        tags.add_column(column)
    for tag in analysis.tags_analysis:
        tags.add_row(escape(tag.tag), escape(tag.volume), escape(tag.competition), f"{tag.score:g}")
    print(tags)

    details = analysis.listing_details
    print(
        f"when made: {escape(details.when_made)} | type: {escape(details.listing_type)} | "
        f"who made: {escape(details.who_made)} | title chars: {details.title_character_count} | "
        f"tags: {details.tags_count}"
    )
    print(
        f"customizable: {details.customizable} | personalized: {details.personalized} | "
        f"variations: {details.has_variations} | craft supply: {details.craft_supply} | "
        f"auto renew: {details.auto_renew}"
    )
    print(f"\n[bold]Description feedback[/bold]\n{escape(analysis.description_feedback)}")
    print(f"\n[bold]Visibility[/bold]\n{escape(analysis.visibility_analysis)}")


def _print_rank(keyword: str, analysis: RankAnalysis) -> None:
    print(f"[bold]Rank estimate for[/bold] {escape(keyword)}: {escape(analysis.estimated_rank)}")
    print(f"\n{escape(analysis.rank_explanation)}")
    _print_list("Improvement suggestions", analysis.improvement_suggestions)


def _print_comparison(comparison: KeywordComparison) -> None:
    table = Table(title="Keyword comparison")
    table.add_column("Metric")
    table.add_column(escape(comparison.first_keyword))
    table.add_column(escape(comparison.second_keyword))

    rows = (
        ("Competition", lambda a: a.competition),
        ("Search volume", lambda a: a.search_volume),
        ("Buyer intent", lambda a: a.buyer_intent),
        ("Competition score", lambda a: str(a.competition_score)),
        ("Est. monthly searches", lambda a: f"{a.estimated_monthly_searches:,}"),
        ("Long-tail keywords", lambda a: str(len(a.long_tail_keywords))),
        ("Product ideas", lambda a: str(len(a.product_ideas))),
    )
    for label, getter in rows:
        table.add_row(
            label,
            getter(comparison.first) if comparison.first else "n/a",
            getter(comparison.second) if comparison.second else "n/a",
        )
    print(table)


@app.command()
def keyword(
    keyword: str,
    favorite: bool = typer.Option(False, "--favorite", help="Toggle the result in favorites."),
):
    """Analyze competition, demand and tags for a keyword."""
    analysis = _require_result(_run(_build_gateway().analyze_keyword(keyword)))
    _print_keyword(keyword, analysis)
    store = _build_store()
    toggle = FavoriteKeyword(keyword=keyword, analysis=analysis) if favorite else None
    _print_favorite_state(store, "keywords", keyword, toggle)


@app.command()
def shop(
    shop_name: Optional[str] = typer.Argument(None, help="Defaults to the connected shop."),
    favorite: bool = typer.Option(False, "--favorite", help="Toggle the result in favorites."),
):
    """Hypothetical analysis of a shop's niche, strengths and weaknesses."""
    store = _build_store()
    name = shop_name or store.get_connected_shop()
    if not name:
        print("[red]No shop name given and no shop connected.[/red]")
        raise typer.Exit(code=2)
    analysis = _require_result(_run(_build_gateway().analyze_shop(name)))
    _print_shop(analysis)
    _print_favorite_state(store, "shops", analysis.shop_name, analysis if favorite else None)


@app.command()
def product(
    description: str = typer.Argument(..., help="Product title, description or listing URL."),
    favorite: bool = typer.Option(False, "--favorite", help="Toggle the result in favorites."),
):
    """Hypothetical listing performance and optimization for a product concept."""
    analysis = _require_result(_run(_build_gateway().analyze_product(description)))
    _print_product(analysis)
    store = _build_store()
    _print_favorite_state(store, "products", analysis.product_concept, analysis if favorite else None)


@app.command()
def rank(keyword: str, description: str = typer.Argument(..., help="Product description.")):
    """Estimate how a product would rank for a keyword."""
    analysis = _require_result(_run(_build_gateway().analyze_rank(keyword, description)))
    _print_rank(keyword, analysis)


@app.command()
def bulk(
    keywords: Optional[List[str]] = typer.Argument(None),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read keywords from a file, one per line."),
):
    """Analyze several keywords one after another."""
    entries = list(keywords or [])
    if file is not None:
        if not file.exists():
            print("[red]File not found[/red]")
            raise typer.Exit(code=1)
        entries.extend(file.read_text(encoding="utf-8").splitlines())

    non_blank = [entry.strip() for entry in entries if entry.strip()]
    skipped = len(non_blank) - len(normalize_keywords(non_blank))
    if skipped:
        print(f"[yellow]Skipped {skipped} duplicate keyword(s).[/yellow]")

    gateway = _build_gateway()
    counter = {"done": 0}

    def on_progress(name: str, result: KeywordAnalysis | None) -> None:
        counter["done"] += 1
        status = "[green]ok[/green]" if result else "[red]failed[/red]"
        print(f"[{counter['done']}] {escape(name)}: {status}")

    results = _run(bulk_analyze_keywords(gateway, entries, on_progress=on_progress))

    table = Table(title="Bulk keyword analysis")
    for column in ("Keyword", "Competition", "Volume", "Score", "Monthly searches"):
        table.add_column(column)
    for name, analysis in results.items():
        if analysis is None:
            table.add_row(escape(name), "failed", "", "", "")
        else:
            table.add_row(
                escape(name),
                analysis.competition,
                analysis.search_volume,
                str(analysis.competition_score),
                f"{analysis.estimated_monthly_searches:,}",
            )
    print(table)
    if any(analysis is None for analysis in results.values()):
        raise typer.Exit(code=1)


@app.command()
def compare(first: str, second: str):
    """Analyze two keywords side by side."""
    comparison = _run(compare_keywords(_build_gateway(), first, second))
    _print_comparison(comparison)
    if not comparison.complete:
        print("[red]Failed to get complete analysis for one or both keywords. Please try again.[/red]")
        raise typer.Exit(code=1)


def _resolve_kind(kind: str) -> str:
    normalized = kind.lower()
    if normalized not in FAVORITE_KEYS:
        print(f"[red]Invalid kind. Use one of: {', '.join(FAVORITE_KEYS)}.[/red]")
        raise typer.Exit(code=2)
    return normalized


@favorites_app.command("list")
def favorites_list(kind: str = typer.Argument("keywords", help="keywords, shops or products.")):
    resolved = _resolve_kind(kind)
    favorites = _build_store().list_favorites(resolved)
    if not favorites:
        print(f"No favorite {resolved} yet.")
        return
    for index, entry in enumerate(favorites, 1):
        if isinstance(entry, FavoriteKeyword):
            detail = f"{entry.analysis.competition} competition, score {entry.analysis.competition_score}"
        elif isinstance(entry, ShopAnalysis):
            detail = entry.niche
        else:
            detail = entry.pricing_suggestion
        print(f"{index}. [bold]{escape(identity_of(resolved, entry))}[/bold] - {escape(detail)}")


@favorites_app.command("remove")
def favorites_remove(kind: str, identity: str):
    resolved = _resolve_kind(kind)
    if not _build_store().remove_favorite(resolved, identity):
        print(f"[yellow]'{escape(identity)}' is not in favorite {resolved}.[/yellow]")
        raise typer.Exit(code=1)
    print(f"Removed '{escape(identity)}' from favorite {resolved}.")


def _print_keyword_list(keyword_list: KeywordList) -> None:
    print(f"[bold]{escape(keyword_list.name)}[/bold] ({keyword_list.id}, created {keyword_list.created_at})")
    if not keyword_list.keywords:
        print("- no keywords yet")
    for item in keyword_list.keywords:
        print(f"- {escape(item)}")


def _require_list(keyword_list: KeywordList | None, list_id: str) -> KeywordList:
    if keyword_list is None:
        print(f"[red]No keyword list with id {escape(list_id)}.[/red]")
        raise typer.Exit(code=1)
    return keyword_list


@lists_app.command("create")
def lists_create(name: str):
    created = _build_store().create_list(name)
    if created is None:
        print("[red]List name must not be empty.[/red]")
        raise typer.Exit(code=2)
    print(f"Created list [bold]{escape(created.name)}[/bold] with id {created.id}.")


@lists_app.command("show")
def lists_show(list_id: Optional[str] = typer.Argument(None)):
    store = _build_store()
    if list_id is not None:
        _print_keyword_list(_require_list(store.get_list(list_id), list_id))
        return
    lists = store.list_keyword_lists()
    if not lists:
        print("No keyword lists yet.")
        return
    for keyword_list in lists:
        print(f"{keyword_list.id}  {escape(keyword_list.name)} ({len(keyword_list.keywords)} keywords)")


@lists_app.command("delete")
def lists_delete(list_id: str):
    if not _build_store().delete_list(list_id):
        _require_list(None, list_id)
    print(f"Deleted list {list_id}.")


@lists_app.command("add")
def lists_add(list_id: str, keyword: str):
    _print_keyword_list(_require_list(_build_store().add_keyword(list_id, keyword), list_id))


@lists_app.command("remove")
def lists_remove(list_id: str, keyword: str):
    _print_keyword_list(_require_list(_build_store().remove_keyword(list_id, keyword), list_id))


@app.command()
def connect(shop_name: Optional[str] = typer.Argument(None)):
    """Link a shop so shop analysis can default to it."""
    connection = ShopConnection(_build_store())
    try:
        connection.begin()
    except ConnectionStateError:
        print(f"[yellow]Already connected to {escape(connection.shop_name or '')}. Disconnect first.[/yellow]")
        raise typer.Exit(code=1)
    name = shop_name if shop_name is not None else typer.prompt("Shop name", default="", show_default=False)
    connection.complete(name)
    if connection.shop_name is None:
        print("[red]No shop name given; not connected.[/red]")
        raise typer.Exit(code=2)
    print(f"[green]Connected to {escape(connection.shop_name)}.[/green]")


@app.command()
def disconnect():
    ShopConnection(_build_store()).disconnect()
    print("Disconnected.")


@app.command()
def status():
    connection = ShopConnection(_build_store())
    if connection.shop_name:
        print(f"Connected to [bold]{escape(connection.shop_name)}[/bold].")
    else:
        print("No shop connected.")


@app.command()
def profit(
    sale_price: float = typer.Option(25.0, help="Item sale price."),
    shipping_charge: float = typer.Option(5.0, help="Shipping charged to the buyer."),
    item_cost: float = typer.Option(5.0, help="Cost to make the item."),
    shipping_cost: float = typer.Option(5.0, help="Actual shipping cost."),
    transaction_fee: float = typer.Option(6.5, help="Transaction fee percent."),
    processing_fee: float = typer.Option(3.0, help="Payment processing fee percent."),
    processing_fixed: float = typer.Option(0.25, help="Fixed payment processing fee."),
    offsite_ad_fee: float = typer.Option(12.0, help="Offsite ads fee percent."),
    offsite_ads: bool = typer.Option(False, "--offsite-ads", help="Sale came through offsite ads."),
):
    """Estimate profit and margin for one sale."""
    breakdown = calculate_profit(
        ProfitInputs(
            sale_price=sale_price,
            shipping_charge=shipping_charge,
            item_cost=item_cost,
            shipping_cost=shipping_cost,
            transaction_fee_percent=transaction_fee,
            processing_fee_percent=processing_fee,
            processing_fee_fixed=processing_fixed,
            offsite_ad_fee_percent=offsite_ad_fee,
            use_offsite_ads=offsite_ads,
        )
    )
    print(f"total revenue: ${breakdown.total_revenue:.2f}")
    print(f"total fees: ${breakdown.total_fees:.2f}")
    print(f"total cost: ${breakdown.total_cost:.2f}")
    color = "green" if breakdown.profit >= 0 else "red"
    print(f"[bold {color}]profit: ${breakdown.profit:.2f}[/bold {color}]")
    print(f"margin: {breakdown.margin:.2f}%")


if __name__ == "__main__":
    app()
