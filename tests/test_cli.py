import json

import pytest

from gamebook.cli import build_parser, main


@pytest.fixture
def story_file(tmp_path, story_source):
    path = tmp_path / "story.md"
    path.write_text(story_source, encoding="utf-8")
    return path


def test_validate_clean_story(story_file, capsys):
    assert main(["validate", str(story_file)]) == 0
    out = capsys.readouterr().out
    assert "No issues found." in out
    assert "Total scenes: 4" in out
    assert "Estimated playtime: 6 - 10 minutes" in out


def test_validate_reports_errors(tmp_path, capsys):
    path = tmp_path / "broken.md"
    path.write_text("---\ntitle: T\n---\n# intro\n* [Go] -> nowhere\n", encoding="utf-8")
    assert main(["validate", str(path)]) == 1
    out = capsys.readouterr().out
    assert 'Missing required "# start" scene' in out
    assert 'Referenced scene "nowhere" is not defined' in out


def test_validate_warnings_only_exit_zero(tmp_path, capsys):
    path = tmp_path / "orphan.md"
    path.write_text("---\ntitle: T\n---\n# start\nHi\n\n# lost\nAlone.\n", encoding="utf-8")
    assert main(["validate", str(path)]) == 0
    assert "WARNING" in capsys.readouterr().out


def test_playable_prints_json(story_file, capsys):
    assert main(["playable", str(story_file)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["title"] == "The Forest Path"
    assert "ai" not in data


def test_playable_parse_error(tmp_path, capsys):
    path = tmp_path / "bad.md"
    path.write_text("no front matter", encoding="utf-8")
    assert main(["playable", str(path)]) == 1
    assert "YAML front matter is missing or invalid" in capsys.readouterr().err


def test_serve_arguments():
    args = build_parser().parse_args(["serve", "--port", "9001", "--reload"])
    assert args.port == 9001
    assert args.reload is True
    assert args.host is None


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
