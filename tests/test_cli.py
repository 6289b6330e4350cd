"""Tests for the taskweave command line."""

from taskweave.cli import main


def test_tasks_lists_catalogue(capsys) -> None:
    assert main(["tasks"]) == 0
    out = capsys.readouterr().out
    assert "--read-xml (rx)" in out
    assert "--write-xml (wx)" in out


def test_convert_to_stdout(tmp_path, capsys) -> None:
    source = tmp_path / "in.txt"
    source.write_text("--rx a.osm --wx b.osm", encoding="utf-8")
    assert main(["convert", str(source), "--no-tool-path", "--short-names"]) == 0
    out = capsys.readouterr().out
    assert out == "--rx file=a.osm outPipe.0=1 <linebreak>\n--wx file=b.osm inPipe.0=1\n"


def test_convert_to_file_picks_dialect(tmp_path) -> None:
    source = tmp_path / "in.txt"
    source.write_text("--rx a.osm --wx b.osm", encoding="utf-8")
    target = tmp_path / "run.sh"
    assert main(["convert", str(source), "-o", str(target)]) == 0
    assert target.read_text(encoding="utf-8").startswith("osmosis \\\n--read-xml file=a.osm")


def test_check_reports_unconnected_input(tmp_path, capsys) -> None:
    source = tmp_path / "in.txt"
    source.write_text("--rx a.osm --merge --wx b.osm", encoding="utf-8")
    assert main(["check", str(source)]) == 1
    assert "error: Required input merge_1.in[1]" in capsys.readouterr().out


def test_check_strict_inputs_is_a_parse_error(tmp_path, capsys) -> None:
    source = tmp_path / "in.txt"
    source.write_text("--rx a.osm --merge --wx b.osm", encoding="utf-8")
    assert main(["check", str(source), "--strict-inputs"]) == 2
    assert "is not connected" in capsys.readouterr().err


def test_check_valid(tmp_path, capsys) -> None:
    source = tmp_path / "in.txt"
    source.write_text("--rx a.osm --wx b.osm", encoding="utf-8")
    assert main(["check", str(source)]) == 0
    assert "2 function(s), 1 connection(s)" in capsys.readouterr().out


def test_custom_templates_and_settings(tmp_path, capsys) -> None:
    templates = tmp_path / "tasks.yaml"
    templates.write_text(
        "tasks:\n"
        "  - {name: read-csv, short_name: rc, outputs: [entity]}\n"
        "  - {name: write-csv, short_name: wc, inputs: [entity]}\n",
        encoding="utf-8",
    )
    settings = tmp_path / "settings.yaml"
    settings.write_text("default_tool_path: ''\nuse_short_task_names: true\n", encoding="utf-8")
    source = tmp_path / "in.txt"
    source.write_text("--read-csv --write-csv", encoding="utf-8")
    code = main(["--templates", str(templates), "--settings", str(settings), "convert", str(source)])
    assert code == 0
    assert capsys.readouterr().out == "--rc outPipe.0=1 <linebreak>\n--wc inPipe.0=1\n"
