"""Command-line entry point for inspecting and watching dialogue files."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Sequence, TextIO

from dialoguesync import (
    DialogueParseError,
    DocumentMonitor,
    EditorSession,
    FileTextDocument,
    Position,
    Scene,
    SyncSettings,
    dump_message,
    group_around_scene,
    parse_dialogue,
    serialize_dialogue,
)
from dialoguesync.messages import SceneMessage


class CommandError(RuntimeError):
    """Raised when a CLI command cannot complete."""


def _load_scenes(path: Path) -> List[Scene]:
    try:
        return parse_dialogue(FileTextDocument(path).get_text())
    except OSError as exc:
        raise CommandError(f"Failed to read '{path}': {exc}") from exc
    except DialogueParseError as exc:
        raise CommandError(f"Failed to parse '{path}': {exc}") from exc


def inspect_file(path: Path, *, output: TextIO) -> None:
    """Print one summary line per scene in declaration order."""

    scenes = _load_scenes(path)
    if not scenes:
        output.write("No scenes defined.\n")
        return

    for scene in scenes:
        npc = scene.npc_name or "(no npc name)"
        output.write(
            f"{scene.scene_id}: {npc} | buttons={len(scene.buttons)} "
            f"open={len(scene.open_commands)} close={len(scene.close_commands)}\n"
        )


def format_file(
    path: Path,
    settings: SyncSettings,
    *,
    write: bool,
    output: TextIO,
) -> bool:
    """Re-serialise ``path``; returns ``True`` when the formatted text differs."""

    scenes = _load_scenes(path)
    original = path.read_text(encoding="utf-8")
    formatted = serialize_dialogue(
        scenes,
        format_version=settings.format_version,
        tab_size=settings.tab_size,
    )
    changed = formatted != original
    if write:
        if changed and not FileTextDocument(path).set_text(formatted):
            raise CommandError(f"Failed to write '{path}'")
    else:
        output.write(formatted)
    return changed


def layout_scene(
    path: Path,
    scene_id: str,
    anchor: Position,
    scale: float,
    *,
    output: TextIO,
) -> None:
    """Print automatic node positions for one scene as JSON."""

    scenes = {scene.scene_id: scene for scene in _load_scenes(path)}
    scene = scenes.get(scene_id)
    if scene is None:
        available = ", ".join(scenes) or "(none)"
        raise CommandError(f"Unknown scene '{scene_id}'. Available scenes: {available}.")

    positions = group_around_scene(scene, anchor, scale)
    payload = {
        node_id: {"x": position.x, "y": position.y}
        for node_id, position in positions.items()
    }
    output.write(json.dumps(payload, indent=2) + "\n")


def watch_file(
    path: Path,
    settings: SyncSettings,
    *,
    interval: float,
    output: TextIO,
    iterations: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll ``path`` and print a message for every scene change detected."""

    def _emit(message: SceneMessage) -> None:
        output.write(json.dumps(dump_message(message)) + "\n")

    session = EditorSession(FileTextDocument(path), settings, message_sink=_emit)
    monitor = DocumentMonitor(path, session)
    try:
        count = 0
        while iterations is None or count < iterations:
            outcome = monitor.poll()
            if outcome.message:
                output.write(outcome.message + "\n")
            count += 1
            if iterations is None or count < iterations:
                sleep(interval)
    finally:
        session.close()


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dialogue document tools")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser("inspect", help="List the scenes in a file.")
    inspect_parser.add_argument("path", type=Path)

    format_parser = subparsers.add_parser(
        "format", help="Re-serialise a dialogue file with consistent formatting."
    )
    format_parser.add_argument("path", type=Path)
    format_parser.add_argument(
        "--tab-size",
        type=int,
        help="Indentation width. Defaults to DIALOGUESYNC_TAB_SIZE or 4.",
    )
    format_parser.add_argument(
        "--format-version",
        help="Format version to write. Defaults to DIALOGUESYNC_FORMAT_VERSION.",
    )
    format_parser.add_argument(
        "--write",
        action="store_true",
        help="Rewrite the file in place instead of printing the result.",
    )

    layout_parser = subparsers.add_parser(
        "layout", help="Print automatic positions for a scene's child nodes."
    )
    layout_parser.add_argument("path", type=Path)
    layout_parser.add_argument("scene_id")
    layout_parser.add_argument("--x", type=float, default=0.0)
    layout_parser.add_argument("--y", type=float, default=0.0)
    layout_parser.add_argument("--scale", type=float, default=5.0)

    watch_parser = subparsers.add_parser(
        "watch", help="Print scene changes as the file is edited."
    )
    watch_parser.add_argument("path", type=Path)
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Seconds between polls (default: 1.0).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None, *, output: TextIO | None = None) -> None:
    """Run a dialogue tool command."""

    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    stream = output if output is not None else sys.stdout

    try:
        settings = SyncSettings.from_env()
        if args.command == "inspect":
            inspect_file(args.path, output=stream)
        elif args.command == "format":
            if args.tab_size is not None or args.format_version is not None:
                settings = SyncSettings(
                    edit_delay_ms=settings.edit_delay_ms,
                    tab_size=args.tab_size if args.tab_size is not None else settings.tab_size,
                    format_version=args.format_version or settings.format_version,
                )
            format_file(args.path, settings, write=args.write, output=stream)
        elif args.command == "layout":
            layout_scene(
                args.path,
                args.scene_id,
                Position(args.x, args.y),
                args.scale,
                output=stream,
            )
        else:
            try:
                watch_file(args.path, settings, interval=args.interval, output=stream)
            except KeyboardInterrupt:
                pass
    except (CommandError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
