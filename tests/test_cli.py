import importlib.util
from pathlib import Path

import pytest

from astral.story_generation import parse_story

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "run_astral.py"


@pytest.fixture(name="cli", scope="module")
def cli_fixture():
    spec = importlib.util.spec_from_file_location("run_astral", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_parse_args_requires_a_seed(cli):
    with pytest.raises(SystemExit):
        cli.parse_args([])


def test_parse_args_collects_directives(cli):
    args = cli.parse_args(
        ["--prompt", "a sentient city", "--mutate", "add a storm", "--preset", "betrayal"]
    )

    assert args.prompt == "a sentient city"
    assert args.mutate == ["add a storm"]
    assert args.preset == ["betrayal"]
    assert args.output == "astral_story.yaml"


def test_progress_tracker_reports_cycle(cli, two_chapter_story, capsys):
    tracker = cli.ProgressTracker()
    document = parse_story(two_chapter_story)

    tracker("cycle:started", {"epoch": 1})
    tracker("document:ready", {"epoch": 1, "document": document})
    tracker("block:resolved", {"epoch": 1, "block_id": "0-1", "failed": True})
    tracker("cycle:failed", {"epoch": 2, "error": "service unreachable"})

    output = capsys.readouterr()
    combined = output.out + output.err
    assert "2 chapter(s) manifested" in combined
    assert "block 0-1: image could not be generated" in combined
    assert "A Tear in the Fabric" in combined


def test_main_reports_missing_replicate_token(cli, monkeypatch, tmp_path, capsys):
    monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
    output_path = tmp_path / "story.yaml"

    exit_code = cli.main(["--prompt", "a sentient city", "--output", str(output_path)])

    assert exit_code == 1
    assert "REPLICATE_API_TOKEN" in capsys.readouterr().err
    assert not output_path.exists()


def test_main_reports_unknown_image_model(cli, monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("REPLICATE_API_TOKEN", "token")
    output_path = tmp_path / "story.yaml"

    exit_code = cli.main(
        [
            "--prompt",
            "a sentient city",
            "--image-model",
            "someone/unknown-model",
            "--output",
            str(output_path),
        ]
    )

    assert exit_code == 1
    assert "someone/unknown-model" in capsys.readouterr().err
    assert not output_path.exists()
