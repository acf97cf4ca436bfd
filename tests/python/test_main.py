import json
from pathlib import Path

from morphoswarm.app import main as cli


def test_parser_defaults():
    args = cli.build_parser().parse_args([])
    assert not args.headless
    assert args.variant == "morphoregulation"
    assert args.steps == 3000
    assert args.port == 8000
    assert args.config is None


def test_headless_run_from_yaml_config(tmp_path):
    config_path = tmp_path / "swarm.yaml"
    config_path.write_text("population: 8\nboundary: 80\nagent_radius: 4\nplot_interval: 1\n")
    summary_path = tmp_path / "summary.json"
    log_path = tmp_path / "metrics.csv"

    cli.main(
        [
            "--headless",
            "--config",
            str(config_path),
            "--steps",
            "3",
            "--seed",
            "11",
            "--log",
            str(log_path),
            "--summary",
            str(summary_path),
            "--deterministic-log",
            "--log-level",
            "WARNING",
        ]
    )

    summary = json.loads(summary_path.read_text())
    assert summary["seed"] == 11
    assert summary["population"] == 8
    assert summary["plot_samples"] == 3
    assert len(Path(log_path).read_text().splitlines()) == 4


def test_interactive_mode_serves_slider_swarm(monkeypatch):
    served = {}

    def fake_run(app, host, port):
        served["app"] = app
        served["host"] = host
        served["port"] = port

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    cli.main(["--variant", "slider", "--port", "9001"])

    controller = served["app"].state.controller
    assert served["host"] == "127.0.0.1"
    assert served["port"] == 9001
    assert controller.world.variant == "slider"
    assert len(controller.world.agents) == 500
    controller.world.close()
