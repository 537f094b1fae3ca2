"""Tests for the command line entry point."""

from jax_bodytree.builders import DEFAULT_BASE_NAME, build_skeleton
from jax_bodytree.cli import format_tree, main


def test_main_prints_skeleton(fixtures_dir, capsys):
    assert main([str(fixtures_dir / "planar_arm.urdf")]) == 0

    out = capsys.readouterr().out
    assert out.startswith("skeleton 'planar_arm': 4 nodes, 4 joints")
    for name in ("[base]", "[arm1]", "[arm2]", "[tool]"):
        assert name in out
    assert out.index("[arm1]") < out.index("[arm2]") < out.index("[tool]")


def test_main_robot_variant(fixtures_dir, capsys):
    assert main([str(fixtures_dir / "planar_arm.urdf"), "--variant", "robot"]) == 0

    out = capsys.readouterr().out
    assert f"[{DEFAULT_BASE_NAME}] (virtual)" in out
    assert "base_root_joint (floating) -> [base]" in out


def test_main_object_variant_keeps_detached_parts(fixtures_dir, capsys):
    assert main([str(fixtures_dir / "mug.urdf"), "--variant", "object"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "object 'mug': 5 nodes, 3 joints"
    # The lid is printed as a second top-level entry.
    assert "[lid]" in lines
    assert any(line.endswith("knob_joint (fixed) -> [lid_knob]") for line in lines)


def test_main_reports_structural_errors(fixtures_dir, capsys):
    assert main([str(fixtures_dir / "unresolved.urdf")]) == 1

    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert "armX" in err


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nowhere.urdf")]) == 1
    assert "Error:" in capsys.readouterr().err


def test_format_tree_connectors(branched_model):
    text = format_tree(build_skeleton(branched_model))

    assert text.splitlines()[1] == "torso_root_joint (fixed) -> [torso]"
    assert "├── l_hip (revolute) -> [l_thigh]" in text
    assert "│   └── l_knee (revolute) -> [l_shin]" in text
    assert "└── r_hip (revolute) -> [r_thigh]" in text
    assert "    └── r_knee (revolute) -> [r_shin]" in text
