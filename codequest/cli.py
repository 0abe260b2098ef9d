#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from codequest.config import SchedulerConfig, speed_level_to_delay
from codequest.headless_http import create_server
from codequest.session import GameSession
from codequest.world import Agent, TileWorld, default_solid_area

logger = logging.getLogger(__name__)


def _read_script(path: Path) -> List[str]:
    if not path.exists():
        raise FileNotFoundError(f"Command script not found: {path}")
    if not path.is_file():
        raise FileNotFoundError(f"Command script path is not a file: {path}")
    lines = []
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            lines.append(stripped)
    return lines


def _load_world(path: Optional[str], tile_size: int) -> Optional[TileWorld]:
    if path is None:
        return None
    map_path = Path(path)
    if not map_path.is_file():
        raise FileNotFoundError(f"Map file not found: {map_path}")
    rows = map_path.read_text(encoding="utf-8").splitlines()
    return TileWorld.from_rows(rows, tile_size=tile_size)


def _build_session(args: argparse.Namespace) -> GameSession:
    config = SchedulerConfig()
    if args.speed is not None:
        config = replace(config, move_speed=args.speed)
    if args.delay is not None:
        config = replace(config, action_delay_ms=args.delay)
    elif args.speed_level is not None:
        config = replace(config, action_delay_ms=speed_level_to_delay(args.speed_level))

    world = _load_world(args.map, config.tile_size)
    agent = None
    if args.start is not None:
        x, y = args.start
        agent = Agent(x=x, y=y, solid_area=default_solid_area(config.tile_size))
    return GameSession(world, agent=agent, config=config, tick_ms=args.tick_ms)


def run_script(args: argparse.Namespace) -> int:
    session = _build_session(args)
    failures = 0
    for line in _read_script(Path(args.script)):
        result = session.submit(line)
        if not result.ok:
            failures += 1
            for error in result.errors:
                print(f"error: {error}", file=sys.stderr)
        if args.ticks is None:
            session.run_until_idle()
    if args.ticks is not None:
        session.step(args.ticks)

    print(json.dumps(session.snapshot(), indent=2))
    if args.frame:
        print("\n".join(session.render_frame()))
    return 1 if failures else 0


def serve(args: argparse.Namespace) -> int:
    session = _build_session(args)
    server = create_server(session, args.host, args.port)
    print(f"Serving CodeQuest session on http://{args.host}:{server.server_address[1]}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0


def _add_session_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--map", default=None, help="ASCII map file; '#' marks solid tiles.")
    parser.add_argument(
        "--start",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Agent start position in world pixels.",
    )
    parser.add_argument("--speed", type=int, default=None, help="Move speed in pixels per tick.")
    parser.add_argument("--delay", type=int, default=None, help="Action delay in milliseconds.")
    parser.add_argument(
        "--speed-level",
        type=int,
        default=None,
        help="Command speed level 1-10 (ignored when --delay is given).",
    )
    parser.add_argument("--tick-ms", type=int, default=16, help="Simulated milliseconds per tick.")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run CodeQuest command scripts headlessly or serve a session over HTTP."
    )
    parser.add_argument("--log-level", default="WARNING", help="Python logging level.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a command script and print the final state.")
    run_parser.add_argument("script", help="Path to a text file with one command per line.")
    run_parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Total ticks to simulate; by default each line runs until idle.",
    )
    run_parser.add_argument("--frame", action="store_true", help="Print the symbolic frame.")
    _add_session_options(run_parser)
    run_parser.set_defaults(handler=run_script)

    serve_parser = subparsers.add_parser("serve", help="Serve a session over JSON HTTP.")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=7070)
    _add_session_options(serve_parser)
    serve_parser.set_defaults(handler=serve)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
