import argparse
import json
from pathlib import Path

import pytest

from ngs_tracking.config import Config
from ngs_tracking.main import build_config_from_args, run_pipeline


def _args(**overrides):
    values = {
        "tracking_file": None,
        "games_file": None,
        "plays_file": None,
        "output_dir": None,
        "config": None,
        "snapshot_play_id": None,
        "snapshot_event": None,
        "animation_play_id": None,
        "voronoi_play_id": None,
        "voronoi_frame_id": None,
        "workers": None,
        "no_animation": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def test_yaml_values_override_defaults(tmp_path: Path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "data:\n"
        "  tracking_file: https://example.com/tracking.csv\n"
        "output_dir: elsewhere\n"
        "plays:\n"
        "  animation_play_id: 938\n"
        "nearest:\n"
        "  workers: 3\n",
        encoding="utf-8",
    )
    config = build_config_from_args(_args(config=str(config_path)))

    assert config.tracking_file == "https://example.com/tracking.csv"
    assert config.output_dir == Path("elsewhere")
    assert config.animation_play_id == 938
    assert config.workers == 3
    assert config.voronoi_play_id == Config().voronoi_play_id


def test_cli_values_override_yaml(tmp_path: Path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("plays:\n  animation_play_id: 938\n", encoding="utf-8")
    config = build_config_from_args(
        _args(config=str(config_path), animation_play_id=345, output_dir=str(tmp_path / "out"), no_animation=True)
    )
    assert config.animation_play_id == 345
    assert config.output_dir == tmp_path / "out"
    assert config.write_animation is False


def test_missing_yaml_file_uses_defaults(tmp_path: Path):
    config = build_config_from_args(_args(config=str(tmp_path / "absent.yaml")))
    assert config == Config()


def test_yaml_must_be_a_mapping(tmp_path: Path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="top-level mapping"):
        build_config_from_args(_args(config=str(config_path)))


def test_run_pipeline_writes_outputs(tmp_path: Path, tracking_csv: Path, games_csv: Path, plays_csv: Path, capsys):
    config = Config(
        tracking_file=str(tracking_csv),
        games_file=str(games_csv),
        plays_file=str(plays_csv),
        output_dir=tmp_path / "out",
        voronoi_play_id=100,
        voronoi_frame_id=2,
        write_animation=False,
    )
    run_pipeline(config)

    stats = tmp_path / "out" / "stats"
    figures = tmp_path / "out" / "figures"
    assert (stats / "nearest_opponents.csv").exists()
    assert len(json.loads((stats / "nearest_opponents.json").read_text())["results"]) == 10
    assert (stats / "receiver_separation.csv").exists()
    assert (figures / "separation_boxplot.png").exists()
    assert (figures / "play_44_kick_received.png").exists()
    assert (figures / "voronoi_play_100_frame_2.png").exists()

    out = capsys.readouterr().out
    assert "Games: 1, plays: 2" in out
    assert "Complete: n=1" in out
