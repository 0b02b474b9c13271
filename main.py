# main.py: Chebyshev type I IIR design CLI
# Prints biquad cascades for any filter kind and runs the streaming filters
# over WAV files block by block.
#
#   python main.py design lowpass --order 4 --samplerate 44100 --cutoff 1000 --ripple-db 1
#   python main.py design bandshelf --order 3 --samplerate 48000 --center 1000 --width 400 \
#       --gain-db -6 --ripple-db 0.5 --json
#   python main.py run --in in.wav --out out.wav --pipeline "cheby_highpass|cheby_highshelf" \
#       --extra all.order=4 cheby_highpass.cutoff=40 cheby_highshelf.cutoff=8000 cheby_highshelf.gain_db=3

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import soundfile as sf

from chebyshev import FilterKind, FilterSpec, design
from errors import FilterDesignError
from filters import available_filters as AF_AVAILABLE, build_filter as AF_BUILD, AudioFilter
from layout import DEFAULT_MAX_ORDER

log = logging.getLogger("chebyiir")

# ---------------- Logging ----------------

def setup_logging(verbosity: int = 0) -> None:
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(verbosity, 2)]
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%H:%M:%S")

# ---------------- CLI helpers ----------------

def _coerce(v: str) -> Any:
    if v.isdigit():
        return int(v)
    try:
        return float(v)
    except ValueError:
        low = v.lower()
        if low in ("true", "false"):
            return low == "true"
    return v

def _parse_kv_pairs(pairs: Optional[List[str]]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if not pairs:
        return out
    for p in pairs:
        if "=" in p:
            k, v = p.split("=", 1)
            out[k.strip()] = _coerce(v.strip())
    return out

def _parse_pipeline(spec: Optional[str], fallback: Optional[str]) -> List[str]:
    if spec:
        stages = [s.strip().lower() for s in spec.split("|") if s.strip()]
        if not stages:
            raise ValueError("Empty --pipeline. Example: cheby_highpass|cheby_lowpass")
        return stages
    if fallback:
        return [fallback.strip().lower()]
    raise ValueError("Provide --pipeline 'f1|f2|...' or --filter NAME.")

def _split_stage_extras(stages: List[str], raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Unprefixed/all apply to all; name.key; index.key (0-based)."""
    global_extras: Dict[str, Any] = {}
    by_name: Dict[str, Dict[str, Any]] = {}
    by_idx: Dict[int, Dict[str, Any]] = {}
    for k, v in raw.items():
        if "." not in k:
            global_extras[k] = v
            continue
        prefix, key = k.split(".", 1)
        prefix = prefix.strip().lower()
        key = key.strip()
        if prefix == "all":
            global_extras[key] = v
        elif prefix.isdigit():
            i = int(prefix)
            if 0 <= i < len(stages):
                by_idx.setdefault(i, {})[key] = v
        else:
            by_name.setdefault(prefix, {})[key] = v
    stage_extras: List[Dict[str, Any]] = []
    for i, name in enumerate(stages):
        merged: Dict[str, Any] = {}
        merged.update(global_extras)
        merged.update(by_name.get(name, {}))
        merged.update(by_idx.get(i, {}))
        stage_extras.append(merged)
    return stage_extras

def _format_cascade(rows: List[tuple]) -> str:
    lines = [f"{'#':>3}  {'b0':>14} {'b1':>14} {'b2':>14} {'a0':>6} {'a1':>14} {'a2':>14}"]
    for i, (b0, b1, b2, a0, a1, a2) in enumerate(rows):
        lines.append(f"{i:>3}  {b0:>14.8g} {b1:>14.8g} {b2:>14.8g} {a0:>6.3g} {a1:>14.8g} {a2:>14.8g}")
    return "\n".join(lines)

# ---------------- Pipeline execution (offline) ----------------

BLOCK = 4096 * 4

def _run_pipeline(reader: sf.SoundFile, filters: List[AudioFilter], sink: sf.SoundFile,
                  frames: int) -> int:
    sr = reader.samplerate
    left = frames
    while left > 0:
        n = min(BLOCK, left)
        x = reader.read(n, dtype="float32", always_2d=True)
        if x.shape[0] == 0:
            break
        y = x
        for f in filters:
            y = f.process(y, sr)
        sink.write(np.clip(y, -1.0, 1.0))
        left -= x.shape[0]
    return frames - left

# ---------------- Commands ----------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Chebyshev type I IIR filter design")
    p.add_argument("-v", "--verbose", action="count", default=0)
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="List streaming filters").set_defaults(func=cmd_list)

    # ---- design ----
    dp = sub.add_parser("design", help="Print the biquad cascade for one design")
    dp.add_argument("kind", choices=[k.value for k in FilterKind])
    dp.add_argument("--order", type=int, required=True)
    dp.add_argument("--samplerate", type=float, required=True, help="Sample rate (Hz)")
    dp.add_argument("--cutoff", type=float, help="Cutoff frequency (Hz) for low/high pass and shelves")
    dp.add_argument("--center", type=float, help="Center frequency (Hz) for band kinds")
    dp.add_argument("--width", type=float, help="Band width (Hz) for band kinds")
    dp.add_argument("--ripple-db", dest="ripple_db", type=float, default=1.0, help="Passband ripple (dB)")
    dp.add_argument("--gain-db", dest="gain_db", type=float, default=0.0, help="Shelf gain (dB)")
    dp.add_argument("--max-order", dest="max_order", type=int, default=DEFAULT_MAX_ORDER)
    dp.add_argument("--json", action="store_true", help="Emit sections as a JSON list of six-tuples")
    dp.set_defaults(func=cmd_design)

    # ---- run ----
    rp = sub.add_parser("run", help="Run one or more filters over a sound file")
    rp.add_argument("--in", dest="inp", type=Path, required=True, help="Input sound file")
    rp.add_argument("--out", type=Path, required=True, help="Output WAV path")
    rp.add_argument("--pipeline", help="Pipe filters as 'f1|f2|f3'")
    rp.add_argument("--filter", choices=list(AF_AVAILABLE().keys()), help="Single filter")
    rp.add_argument("--extra", nargs="*", help="Extra args like key=val, all.key=val, <name>.key=val, <idx>.key=val")
    rp.add_argument("--start", type=float, default=0.0, help="Start time (sec)")
    rp.add_argument("--duration", type=float, help="Duration (sec)")
    rp.set_defaults(func=cmd_run)

    return p

def cmd_list(_args: argparse.Namespace) -> int:
    print("Available filters:")
    for name, help_text in AF_AVAILABLE().items():
        print(f"  - {name:16s} : {help_text}")
    return 0

def cmd_design(args: argparse.Namespace) -> int:
    spec = FilterSpec(kind=FilterKind(args.kind), order=args.order, sample_rate=args.samplerate,
                      ripple_db=args.ripple_db, cutoff_frequency=args.cutoff,
                      center_frequency=args.center, width_frequency=args.width, gain_db=args.gain_db)
    try:
        cascade = design(spec, max_order=args.max_order)
    except FilterDesignError as e:
        log.error("Design failed: %s", e)
        return 1
    rows = cascade.to_list()
    if args.json:
        print(json.dumps({"kind": spec.kind.value, "sample_rate": spec.sample_rate, "sections": rows}))
    else:
        print(_format_cascade(rows))
    log.info("%s: %d section(s)", spec.kind.value, len(cascade))
    return 0

def cmd_run(args: argparse.Namespace) -> int:
    try:
        stages = _parse_pipeline(args.pipeline, args.filter)
        unknown = [s for s in stages if s not in AF_AVAILABLE().keys()]
        if unknown:
            raise SystemExit(f"Unknown filter(s) in pipeline: {', '.join(unknown)}")
        stage_extras = _split_stage_extras(stages, _parse_kv_pairs(args.extra))

        with sf.SoundFile(args.inp, mode="r") as f_in:
            sr = f_in.samplerate
            total = len(f_in)
            if args.start and args.start > 0:
                f_in.seek(int(args.start * sr))
            remaining = total - f_in.tell()
            if args.duration is not None:
                remaining = min(remaining, int(args.duration * sr))

            args.out.parent.mkdir(parents=True, exist_ok=True)
            filters = [AF_BUILD(name, **stage_extras[i]) for i, name in enumerate(stages)]
            with sf.SoundFile(args.out, mode="w", samplerate=sr, channels=f_in.channels,
                              subtype="PCM_16") as f_out:
                done = _run_pipeline(f_in, filters, f_out, remaining)
        log.info("Saved %s (%d frames)", args.out, done)
        return 0
    except Exception as e:
        log.exception("Failed: %s", e)
        return 1

# ---------------- Entry ----------------

def build_and_run(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)

if __name__ == "__main__":  # pragma: no cover
    sys.exit(build_and_run())
