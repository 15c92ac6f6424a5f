"""Command-line entry point for the Stardew save companion."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence, TextIO

import uvicorn

from stardewtracker import (
    BundleWithStatus,
    bundle_completed,
    bundles_by_room,
    get_active_bundles,
    item_details,
    local_legend_progress,
)
from stardewtracker.api.settings import SaveApiSettings
from stardewtracker.logging_config import configure_logging


def _load_players(path: Path) -> list[dict[str, Any]]:
    """Read a save export containing one player record or a list of them."""

    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list) and all(isinstance(entry, dict) for entry in payload):
        return payload
    raise ValueError("Save file must contain a player object or a list of players.")


def _select_player(
    players: Sequence[dict[str, Any]], player_id: str | None
) -> dict[str, Any] | None:
    if player_id is None:
        return players[0] if players else None
    for player in players:
        if player.get("_id") == player_id:
            return player
    raise ValueError(f"Player '{player_id}' was not found in the save file.")


def _progress_label(bundle_with_status: BundleWithStatus) -> str:
    bundle = bundle_with_status.bundle
    if bundle.is_gold:
        return "gold"
    done = sum(1 for flag in bundle_with_status.bundle_status if flag)
    return f"{min(done, bundle.items_required)}/{bundle.items_required}"


def _print_missing_items(bundle_with_status: BundleWithStatus, out: TextIO) -> None:
    items = bundle_with_status.bundle.resolved_items()
    status = bundle_with_status.bundle_status
    for index, item in enumerate(items):
        if index < len(status) and status[index]:
            continue
        details = item_details(item.item_id)
        print(f"      - {details.name} x{item.quantity}", file=out)


def summarise_bundles(
    bundles: Sequence[BundleWithStatus], out: TextIO, *, show_items: bool = False
) -> None:
    """Write a room-by-room completion summary for ``bundles``.

    With ``show_items`` every incomplete bundle also lists the items that
    are still missing.
    """

    for room_name, room_bundles in bundles_by_room(bundles).items():
        if not room_bundles:
            continue
        print(room_name, file=out)
        for entry in room_bundles:
            marker = "x" if bundle_completed(entry) else " "
            name = entry.bundle.localized_name or entry.bundle.name
            print(f"  [{marker}] {name} Bundle ({_progress_label(entry)})", file=out)
            if show_items and marker == " ":
                _print_missing_items(entry, out)

    completed = sum(1 for entry in bundles if bundle_completed(entry))
    progress = local_legend_progress(bundles)
    status = "complete" if progress.completed else "in progress"
    print(
        f"Local Legend: {status}, {completed} bundles complete"
        f"{progress.additional_description}",
        file=out,
    )


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stardew save companion")
    parser.add_argument(
        "save_file",
        nargs="?",
        type=Path,
        help="JSON export of one or more player records to summarise.",
    )
    parser.add_argument(
        "--player-id",
        type=str,
        help="Identifier of the player to summarise (default: the first one).",
    )
    parser.add_argument(
        "--show-items",
        action="store_true",
        help="List the missing items of every incomplete bundle.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the save API server instead of printing a summary.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host interface for the save API server.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port where the save API server should listen.",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Run the save API server with auto-reload enabled.",
    )
    parser.add_argument(
        "--log-level",
        help=(
            "Logging level for tracker output (default: STARDEWTRACKER_LOG_LEVEL "
            "or INFO)."
        ),
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """Summarise bundle progress from a save file or serve the save API."""

    args = _parse_args(argv)
    try:
        settings = SaveApiSettings.from_env()
    except ValueError as exc:
        print(f"Invalid environment configuration: {exc}")
        raise SystemExit(2) from exc

    log_level = args.log_level or settings.log_level
    try:
        configure_logging(log_level.upper())
    except ValueError as exc:
        print(f"Invalid --log-level '{log_level}': {exc}")
        raise SystemExit(2) from exc

    if args.serve:
        if args.save_file is not None:
            print("--serve cannot be combined with a save file.")
            raise SystemExit(2)
        uvicorn.run(
            "stardewtracker.api.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=args.reload,
        )
        return

    player: dict[str, Any] | None = None
    if args.save_file is not None:
        try:
            players = _load_players(args.save_file)
            player = _select_player(players, args.player_id)
        except (OSError, ValueError) as exc:
            print(f"Failed to load players from '{args.save_file}': {exc}")
            raise SystemExit(2) from exc
    elif args.player_id is not None:
        print("--player-id was provided but no save file was given.")
        raise SystemExit(2)

    summarise_bundles(get_active_bundles(player), sys.stdout, show_items=args.show_items)


if __name__ == "__main__":
    main()
