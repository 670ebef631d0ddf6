"""Headless host: drives the engine clock, auto-save and a status log.

A presentation layer embeds the engine the same way: create a Simulation,
load the save, attach an AutoSaver, then call sim.step(dt) once per frame and
redraw from ascendance.views whenever the engine emits an event.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from ascendance.config import AUTO_SAVE_INTERVAL_SEC, load_tuning
from ascendance.logging_setup import setup_logger
from ascendance.save import AutoSaver, default_backend, load_game
from ascendance.simulation import Simulation, demo_simulation
from ascendance.utils import format_number
from ascendance.views import generator_views, resource_view

logger = logging.getLogger("ascendance.host")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="ascendance", description="Run the Productivity Ascendance engine headless.")
    p.add_argument("--save", type=Path, default=None, help="save file (default: ./ascendance_save.json)")
    p.add_argument("--tuning", type=Path, default=None, help="JSON file overriding balance constants")
    p.add_argument("--seconds", type=float, default=0.0, help="stop after this many seconds (0 = run until Ctrl-C)")
    p.add_argument("--fps", type=float, default=30.0)
    p.add_argument("--autosave", type=float, default=AUTO_SAVE_INTERVAL_SEC, help="auto-save interval in seconds")
    p.add_argument("--status-every", type=float, default=10.0, help="seconds between status lines")
    p.add_argument("--log-file", type=Path, default=None)
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def _log_status(sim: Simulation) -> None:
    res = resource_view(sim)
    owned = ", ".join(f"{g.name} x{g.count}" for g in generator_views(sim) if g.count) or "no generators"
    logger.info(
        "Energy %s | Discipline %s | Focus %s | Streak %d (x%.2f) | %s/s | %s",
        format_number(res.energy),
        format_number(res.discipline_points),
        format_number(res.focus_points),
        res.current_streak,
        res.streak_energy_multiplier,
        format_number(res.passive_energy_per_second),
        owned,
    )


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logger(args.log_file, logging.DEBUG if args.verbose else logging.INFO)

    sim = demo_simulation(load_tuning(args.tuning))
    backend = default_backend(args.save)
    load_game(sim, backend)
    saver = AutoSaver(sim, backend, args.autosave)

    frame = 1.0 / args.fps if args.fps > 0 else 1.0 / 30.0
    start = last = last_status = time.monotonic()
    _log_status(sim)

    try:
        while True:
            now = time.monotonic()
            dt = now - last
            last = now

            sim.step(dt)
            saver.update(dt)

            if now - last_status >= args.status_every:
                last_status = now
                _log_status(sim)

            if args.seconds and now - start >= args.seconds:
                break
            await asyncio.sleep(frame)
    finally:
        saver.save_now()
        saver.close()
        logger.info("Saved on exit.")
    return 0


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
