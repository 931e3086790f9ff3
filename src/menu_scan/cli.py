from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, List, Sequence

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .menu_text import extract_dishes_from_text
from .models import Context, Hunger, RejectedDish, Timing, merge_profiles
from .recommenders import MODES, Recommendation, get_recommender


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rank menu dishes against a dietary profile and meal context")
    parser.add_argument(
        "dishes",
        nargs="?",
        help="Path to a JSON file with a list of dishes (or an object with a 'dishes' key)",
    )
    parser.add_argument("--menu-text", help="Path to raw menu text to parse instead of a dishes JSON file")
    parser.add_argument("--profile", help="Path to the base profile JSON")
    parser.add_argument("--extended-profile", help="Path to an extended profile JSON merged over the base profile")
    parser.add_argument("--hunger", choices=[h.value for h in Hunger], default=Hunger.MODERATE.value)
    parser.add_argument("--timing", choices=[t.value for t in Timing], default=Timing.REGULAR.value)
    parser.add_argument("--mode", choices=MODES, default="contextual", help="Recommendation mode (default: contextual)")
    parser.add_argument("--show-all", action="store_true", help="List every safe dish, not only the top 3")
    parser.add_argument("--show-rejected", action="store_true", help="List dishes removed by hard constraints")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING)")
    return parser


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _load_dishes(opts: argparse.Namespace) -> List[Any]:
    if opts.menu_text:
        return list(extract_dishes_from_text(Path(opts.menu_text).read_text(encoding="utf-8")))
    payload = _load_json(opts.dishes)
    if isinstance(payload, dict):
        payload = payload.get("dishes", [])
    if not isinstance(payload, list):
        raise ValueError("dishes file must contain a JSON list")
    return payload


def main(args: list[str] | None = None) -> None:
    parser = build_parser()
    opts = parser.parse_args(args=args)
    if not opts.dishes and not opts.menu_text:
        parser.error("provide a dishes JSON file or --menu-text")
    logging.basicConfig(level=opts.log_level.upper())

    console = Console()
    try:
        dishes = _load_dishes(opts)
        profile = merge_profiles(
            _load_json(opts.profile) if opts.profile else None,
            _load_json(opts.extended_profile) if opts.extended_profile else None,
        )
    except (OSError, ValueError, ValidationError) as exc:
        console.print(f"[red]Failed to load input: {exc}[/]")
        return

    context = Context(hunger=opts.hunger, timing=opts.timing)
    result = get_recommender(opts.mode).rank(dishes, profile, context)

    if opts.show_rejected and result.rejected:
        _render_rejected(console, result.rejected)

    if not result.top3:
        if result.no_safe_dishes:
            console.print("[yellow]No dishes matched your dietary needs.[/]")
        else:
            console.print("[yellow]No dishes to rank.[/]")
        return

    if result.fallback:
        console.print("[yellow]Relaxed mode: nothing scored well, showing the closest matches.[/]")
    _render_recommendations(console, "Top 3", result.top3, show_label=opts.mode == "category")
    if opts.show_all:
        _render_recommendations(console, "All safe dishes", result.all, show_label=opts.mode == "category")
    if result.macros_estimated:
        console.print("[dim]Some macros were estimated from the dish description and are approximate.[/]")


def _render_recommendations(
    console: Console,
    title: str,
    items: Sequence[Recommendation],
    *,
    show_label: bool = False,
) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Dish")
    if show_label:
        table.add_column("Label")
    table.add_column("Score", justify="right")
    table.add_column("Reasons")
    for rank, item in enumerate(items, start=1):
        row = [str(rank), item.dish.name]
        if show_label:
            row.append(item.label or "")
        row.extend([f"{item.score:.1f}", ", ".join(item.reasons)])
        table.add_row(*row)
    console.print(table)


def _render_rejected(console: Console, rejected: Sequence[RejectedDish]) -> None:
    table = Table(title="Filtered out")
    table.add_column("Dish")
    table.add_column("Reason")
    for item in rejected:
        table.add_row(item.dish.name, item.rejection_reason)
    console.print(table)


if __name__ == "__main__":  # pragma: no cover
    main()
