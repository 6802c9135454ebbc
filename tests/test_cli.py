from click.testing import CliRunner

import dioramabuilder.cli as cli_mod
from dioramabuilder.cli import cli


class StubBuilder:
    def __init__(self, diorama):
        self.diorama = diorama

    def build(self):
        return self.diorama


class StubDiorama:
    def __init__(self, root):
        self.root = root


def test_build_exports_glb(tmp_path, monkeypatch, small_scene):
    monkeypatch.setattr(cli_mod, "DioramaBuilder", lambda **kw: StubBuilder(StubDiorama(small_scene)))
    output = tmp_path / "out.glb"
    result = CliRunner().invoke(cli, ['build', '-o', str(output), '--seed', '3', '--day'])
    assert result.exit_code == 0, result.output
    assert output.exists()
    assert str(output) in result.output


def test_build_failure_becomes_click_error(monkeypatch, small_scene):
    def explode(root, output):
        raise ValueError("No visible geometry to generate GLB file")

    monkeypatch.setattr(cli_mod, "DioramaBuilder", lambda **kw: StubBuilder(StubDiorama(small_scene)))
    monkeypatch.setattr(cli_mod, "export_glb", explode)
    result = CliRunner().invoke(cli, ['build'])
    assert result.exit_code == 1
    assert "No visible geometry" in result.output


def test_stats_prints_scene_counts(diorama, monkeypatch):
    monkeypatch.setattr(cli_mod, "DioramaBuilder", lambda **kw: StubBuilder(diorama))
    result = CliRunner().invoke(cli, ['stats'])
    assert result.exit_code == 0, result.output
    assert "nodes:" in result.output
    assert "agents: 7" in result.output


def test_simulate_reports_agents(diorama, monkeypatch):
    monkeypatch.setattr(cli_mod, "DioramaBuilder", lambda **kw: StubBuilder(diorama))
    result = CliRunner().invoke(cli, ['simulate', '--seconds', '0.5', '--camera', 'taxi'])
    assert result.exit_code == 0, result.output
    assert "Simulated 30 frames" in result.output
    assert "Train('red'" in result.output
    assert "Elevator 60" in result.output
    assert "Camera TAXI: eye=" in result.output


def test_simulate_orbit_hands_over_to_the_controller(diorama, monkeypatch):
    monkeypatch.setattr(cli_mod, "DioramaBuilder", lambda **kw: StubBuilder(diorama))
    result = CliRunner().invoke(cli, ['simulate', '--seconds', '0', '--camera', 'ORBIT'])
    assert result.exit_code == 0, result.output
    assert "orbit controller" in result.output
