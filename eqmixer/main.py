"""
Command line entry point for EQ Mixer.

Works on the stored profile state without an audio backend; the offline
host evaluates filter responses analytically.

Usage:
    eqmixer list
    eqmixer show 2
    eqmixer export 2 -o ~/Desktop/
    eqmixer import "Living Room.fsprofile.json"
    eqmixer response 2 --points 32 --sample-rate 48000
"""

import argparse
import json
import sys
from pathlib import Path

from eqmixer.audio.curves import gain_to_db
from eqmixer.audio.host import OfflineHostGraph
from eqmixer.audio.response import log_frequencies
from eqmixer.config import CHANNEL_NAMES, DEFAULT_SAMPLE_RATE, MASTER_CHANNEL
from eqmixer.profiles import ProfileError, ProfileStorage, ProfileStore
from eqmixer.session import Session
from eqmixer.utils.formatting import describe_stage, format_db, format_frequency
from eqmixer.utils.logger import LogLevel, logger


def _open_store(args) -> ProfileStore:
    storage = ProfileStorage(Path(args.state) if args.state else None)
    store = ProfileStore(storage=storage)
    store.load()
    return store


def cmd_list(args) -> int:
    store = _open_store(args)
    for profile in store.profiles:
        marker = "*" if store.active and profile.id == store.active.id else " "
        print(f"{marker} {profile.id:3d}  {profile.label}  "
              f"({len(profile.equalizer_nodes)} stage(s))")
    return 0


def cmd_show(args) -> int:
    store = _open_store(args)
    profile = store.get(args.id)

    print(f"{profile.label} (id {profile.id})")
    print("Equalizer:")
    if not profile.equalizer_nodes:
        print("  (bypass)")
    for i, stage in enumerate(profile.equalizer_nodes):
        print(f"  {i + 1}. {describe_stage(stage)}")

    print("Mixer:")
    for ch in profile.mixer_channels:
        flags = []
        if ch.muted:
            flags.append("M")
        if ch.solo and ch.id != MASTER_CHANNEL:
            flags.append("S")
        name = CHANNEL_NAMES[ch.id]
        print(f"  {name:<15} {format_db(gain_to_db(ch.gain), signed=True):>6} dB "
              f"{' '.join(flags)}".rstrip())
    return 0


def cmd_export(args) -> int:
    store = _open_store(args)
    filename = store.export_filename(args.id)
    text = json.dumps(store.export_document(args.id), indent=2)

    target = Path(args.output).expanduser() if args.output else Path.cwd()
    if target.is_dir():
        target = target / filename

    with open(target, "w", encoding="utf-8") as f:
        f.write(text)
    print(f"Exported to {target}")
    return 0


def cmd_import(args) -> int:
    store = _open_store(args)
    with open(args.path, "r", encoding="utf-8") as f:
        text = f.read()

    imported = store.import_json(text)
    store.writer.flush()
    for profile in imported:
        print(f"Imported {profile.label} (id {profile.id})")
    return 0


def cmd_response(args) -> int:
    store = _open_store(args)
    host = OfflineHostGraph(sample_rate=args.sample_rate)
    session = Session(host, store, response_points=args.points)
    store.get(args.id)
    session.start()
    session.activate(args.id)

    freqs = log_frequencies(host.sample_rate, args.points)
    for freq, db in zip(freqs, session.response):
        print(f"{format_frequency(freq):>7}Hz  {format_db(float(db), signed=True):>7} dB")
    session.release()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eqmixer",
        description="Inspect and exchange EQ Mixer audio profiles",
    )
    parser.add_argument("--state", help="Profile state file (default: app state dir)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug log output")
    parser.add_argument("--log-file", help="Also write a full debug log to this file")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List stored profiles")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Show a profile's stages and channels")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("export", help="Write a profile to a .fsprofile.json file")
    p.add_argument("id", type=int)
    p.add_argument("-o", "--output", help="Output file or directory (default: cwd)")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Add the profiles from a profile file")
    p.add_argument("path")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("response", help="Print a profile's EQ frequency response")
    p.add_argument("id", type=int)
    p.add_argument("--points", type=int, default=32)
    p.add_argument("--sample-rate", type=float, default=DEFAULT_SAMPLE_RATE)
    p.set_defaults(func=cmd_response)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        logger.configure(LogLevel.DEBUG if args.verbose else LogLevel.WARNING,
                         log_file=args.log_file)
        return args.func(args)
    except (ProfileError, OSError) as e:
        logger.error(f"{args.command} failed", component="APP", details=str(e))
        return 1
    finally:
        logger.close_file()


if __name__ == "__main__":
    sys.exit(main())
