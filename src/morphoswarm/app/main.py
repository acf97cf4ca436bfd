from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

import uvicorn

from ..sim.core.config import AppConfig, SimulationConfig
from .headless import run_headless
from .server import create_app

logger = logging.getLogger(__name__)


def _load_config(variant: str, config_path: Optional[Path]) -> SimulationConfig:
    if config_path is not None:
        return SimulationConfig.from_yaml(config_path)
    if variant == "slider":
        return SimulationConfig.slider_swarm()
    return SimulationConfig()


def run_interactive(config: SimulationConfig, host: str, port: int) -> None:
    app = create_app(AppConfig(simulation=config))
    logger.info("serving interactive %s swarm on http://%s:%d", app.state.controller.world.variant, host, port)
    uvicorn.run(app, host=host, port=port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Flocking swarm driven by Notch/VEGFR/DLL4 signaling")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run a batch simulation without the interactive control surface.",
    )
    parser.add_argument("--variant", choices=["morphoregulation", "slider"], default="morphoregulation")
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the defaults")
    parser.add_argument("--steps", type=int, default=3000, help="Ticks to run in headless mode")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-tick metrics")
    parser.add_argument("--plot-log", type=Path, default=None, help="CSV file for the sampled notch/vegfr series")
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON summary of the run")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = _load_config(args.variant, args.config)
    if args.seed is not None:
        config.seed = args.seed
    if args.headless:
        run_headless(
            args.steps,
            log_path=args.log,
            plot_log_path=args.plot_log,
            config=config,
            deterministic_log=args.deterministic_log,
            summary_path=args.summary,
        )
    else:
        run_interactive(config, args.host, args.port)


if __name__ == "__main__":
    main()
