from metaopt.gcp.cli import main

TINY = "c FILE: tiny.col\np edge 3 2\no 3\ne 1 2\ne 2 3\n"


def write_instance(directory, name, text=TINY):
    path = directory / f"{name}.col"
    path.write_text(text, encoding="utf-8")
    return path


def test_prints_instance_parameters(tmp_path, capsys):
    write_instance(tmp_path, "tiny")
    assert main(["--directory", str(tmp_path), "tiny"]) == 0
    out = capsys.readouterr().out
    assert "========[ Instance ]========" in out
    assert "|-> Name: tiny.col" in out
    assert "|-> Vertices: 3" in out
    assert "|-> Edges: 2" in out
    assert "\\-> Optimum colouring: 3" in out
    assert f"FILE PATH: {tmp_path / 'tiny.col'}" in out


def test_processes_every_instance(tmp_path, capsys):
    write_instance(tmp_path, "first")
    write_instance(tmp_path, "second")
    assert main(["--directory", str(tmp_path), "first", "second"]) == 0
    out = capsys.readouterr().out
    assert out.count("========[ Instance ]========") == 2


def test_missing_file_fails(tmp_path, capsys):
    assert main(["--directory", str(tmp_path), "absent"]) == 1
    assert "Error opening file" in capsys.readouterr().err


def test_malformed_file_fails(tmp_path, capsys):
    write_instance(tmp_path, "broken", "p edge x y\n")
    assert main(["--directory", str(tmp_path), "broken"]) == 1
    assert "broken.col" in capsys.readouterr().err