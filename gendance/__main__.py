"""
Entry point for GenDance.

Usage:
    # Web API (default)
    python -m gendance serve

    # Print tempo + energy for a track
    python -m gendance analyze song.mp3

    # Dump the resolved frames of a routine at a fixed rate
    python -m gendance frames song.mp3 --timeline routine.json --fps 10
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np
import uvicorn

from .config import APP_CONFIG


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="gendance",
        description="GenDance - song analysis and beat-synced choreography playback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m gendance serve --port 9000
    python -m gendance analyze song.wav
    python -m gendance frames song.wav --timeline routine.json --fps 10
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the web API")
    serve.add_argument(
        "--host",
        default=APP_CONFIG["host"],
        help=f"Host to bind to (default: {APP_CONFIG['host']})",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=APP_CONFIG["port"],
        help=f"Port to bind to (default: {APP_CONFIG['port']})",
    )

    analyze = sub.add_parser("analyze", help="Print BPM and energy envelope as JSON")
    analyze.add_argument("audio", help="Audio file to analyze")

    frames = sub.add_parser("frames", help="Print resolved playback frames")
    frames.add_argument("audio", help="Audio file to analyze")
    frames.add_argument("--timeline", help="Routine JSON file (default: hold the idle pose)")
    frames.add_argument("--fps", type=float, default=10.0, help="Frames per second (default: 10)")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "serve"
        args.host = APP_CONFIG["host"]
        args.port = APP_CONFIG["port"]
    return args


def run_analyze(audio: str) -> int:
    from .core.errors import DecodeFailure
    from .core.features import analyze_audio

    try:
        analysis = analyze_audio(audio, Path(audio).name)
    except DecodeFailure as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(analysis.to_dict(), indent=2))
    return 0


def run_frames(audio: str, timeline_path: str | None, fps: float) -> int:
    """Simulate the playback loop against a virtual clock."""
    from .behaviors.choreography_player import ChoreographyPlayer
    from .config import get_default_figure_config
    from .core.errors import DecodeFailure
    from .core.features import analyze_audio
    from .core.figure_mixer import FigureMixer

    player = ChoreographyPlayer(FigureMixer(get_default_figure_config()))
    try:
        player.analysis = analyze_audio(audio, Path(audio).name, player.extractor_config)
    except DecodeFailure as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if timeline_path:
        result = player.set_timeline(Path(timeline_path).read_text())
        if result.notice:
            print(f"Notice: {result.notice}", file=sys.stderr)

    print(f"{player.analysis.name}: {player.analysis.bpm:.0f} BPM, {len(player.timeline)} moves")
    print(f"{'Time':<6} | {'Step':<4} | {'Blend':<5} | {'Pulse':<5} | {'Move':<14} | Next")
    print("-" * 60)
    for t in np.arange(0.0, player.analysis.duration, 1.0 / fps):
        frame = player.tick(float(t))
        print(
            f"{frame.clock:<6} | {frame.cursor.active_step_index:<4} | {frame.blend:<5.2f} | "
            f"{frame.pulse:<5.2f} | {frame.label:<14} | {frame.next_label}"
        )
    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "analyze":
        sys.exit(run_analyze(args.audio))
    elif args.command == "frames":
        sys.exit(run_frames(args.audio, args.timeline, args.fps))
    else:
        print("Starting GenDance web API")
        print(f"API available at http://{args.host}:{args.port}")
        uvicorn.run(
            "gendance.app:app",
            host=args.host,
            port=args.port,
            reload=False,
        )


if __name__ == "__main__":
    main()
