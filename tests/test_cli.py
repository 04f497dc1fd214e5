"""Tests for the command-line front end (skeletor.cli).

The CLI is driven through ``main(argv)``; output is captured with the
``record_console`` fixture and exit codes through ``SystemExit``.
"""

from __future__ import annotations

import pytest

from skeletor import __version__
from skeletor.cli import DEFAULT_MODULE_PREFIX, build_parser, main
from skeletor.scaffolder import ConflictPolicy


def _output(console) -> str:
    return console.file.getvalue()


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    @pytest.mark.unit
    def test_create_defaults(self):
        args = build_parser().parse_args(["create", "--name", "helm3"])
        assert args.command == "create"
        assert args.module is None
        assert args.output is None
        assert args.on_conflict is None
        assert args.dry_run is False

    @pytest.mark.unit
    def test_name_required(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["create"])
        assert exc_info.value.code == 2

    @pytest.mark.unit
    def test_template_options_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["create", "--name", "x", "--template", "mixin", "--template-dir", "."])

    @pytest.mark.unit
    def test_on_conflict_choices(self):
        args = build_parser().parse_args(["create", "--name", "x", "--on-conflict", "skip"])
        assert ConflictPolicy(args.on_conflict) is ConflictPolicy.SKIP
        with pytest.raises(SystemExit):
            build_parser().parse_args(["create", "--name", "x", "--on-conflict", "merge"])

    @pytest.mark.unit
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# ---------------------------------------------------------------------------
# Simple commands
# ---------------------------------------------------------------------------


class TestInfoCommands:
    @pytest.mark.unit
    def test_version(self, record_console):
        main(["version"])
        assert _output(record_console).strip() == f"skeletor {__version__}"

    @pytest.mark.unit
    def test_list_templates(self, record_console):
        main(["list-templates"])
        assert "mixin" in _output(record_console).split()


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    @pytest.mark.unit
    def test_default_output_and_module(self, tmp_path, monkeypatch, record_console):
        monkeypatch.chdir(tmp_path)
        main(["create", "--name", "helm3", "--author", "Jane Doe", "--quiet"])

        project = tmp_path / "helm3"
        go_mod = (project / "go.mod").read_text()
        assert f"module {DEFAULT_MODULE_PREFIX}/helm3" in go_mod
        assert (project / "pkg" / "helm3" / "mixin.go").is_file()

        output = _output(record_console)
        assert "Generation Summary" in output
        assert "Mixin 'helm3' successfully created in helm3" in output
        assert "Next steps:" in output

    @pytest.mark.unit
    def test_explicit_module_and_output(self, tmp_path, record_console):
        out = tmp_path / "work" / "my-helm"
        main(
            [
                "create",
                "--name", "helm3",
                "--module", "github.com/acme/helm3",
                "--email", "sec@acme.io",
                "--output", str(out),
            ]
        )
        assert "module github.com/acme/helm3" in (out / "go.mod").read_text()
        assert "mailto:sec@acme.io" in (out / ".well-known" / "security.txt").read_text()
        assert "Created go.mod" in _output(record_console)

    @pytest.mark.unit
    def test_dry_run(self, tmp_path, record_console):
        out = tmp_path / "out"
        main(["create", "--name", "helm3", "-o", str(out), "--dry-run"])
        assert not out.exists()
        output = _output(record_console)
        assert "[Dry Run] Simulation complete. No files were written." in output
        assert "Files planned" in output

    @pytest.mark.unit
    def test_dry_run_from_env(self, tmp_path, monkeypatch, record_console):
        monkeypatch.setenv("SKELETOR_DRY_RUN", "1")
        out = tmp_path / "out"
        main(["create", "--name", "helm3", "-o", str(out)])
        assert not out.exists()

    @pytest.mark.unit
    def test_template_dir(self, make_template_dir, tmp_path, record_console):
        root = make_template_dir({"NOTES.md.tmpl": "{{ PluginNameCap }} by {{ AuthorName }}\n"})
        out = tmp_path / "out"
        main(["create", "--name", "helm3", "--author", "Jane", "--template-dir", str(root), "-o", str(out)])
        assert (out / "NOTES.md").read_text() == "Helm3 by Jane\n"
        assert [p.name for p in out.iterdir()] == ["NOTES.md"]

    @pytest.mark.unit
    def test_template_json_not_copied(self, make_template_dir, tmp_path, record_console):
        root = make_template_dir(
            {
                "template.json": '{"name": "porter-mixin", "ignore": ["*.bak"]}',
                "README.md.tmpl": "# {{ PluginName }}\n",
                "README.md.bak": "old",
            }
        )
        out = tmp_path / "out"
        main(["create", "--name", "helm3", "--template-dir", str(root), "-o", str(out)])
        assert [p.name for p in out.iterdir()] == ["README.md"]
        assert "porter-mixin" in _output(record_console)

    @pytest.mark.unit
    def test_template_hooks_warned(self, make_template_dir, tmp_path, record_console):
        root = make_template_dir(
            {"template.json": '{"hooks": {"post_gen": ["go mod tidy"]}}', "a.txt": "x"}
        )
        out = tmp_path / "out"
        main(["create", "--name", "helm3", "--template-dir", str(root), "-o", str(out)])
        assert "Template hooks are not run: post_gen" in _output(record_console)
        assert (out / "a.txt").read_text() == "x"

    @pytest.mark.unit
    def test_malformed_template_json(self, make_template_dir, tmp_path, record_console):
        root = make_template_dir({"template.json": "{broken", "a.txt": "x"})
        out = tmp_path / "out"
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "helm3", "--template-dir", str(root), "-o", str(out)])
        assert exc_info.value.code == 1
        assert "not valid JSON" in _output(record_console)
        assert not out.exists()

    @pytest.mark.unit
    def test_duplicate_destinations(self, make_template_dir, tmp_path, record_console):
        root = make_template_dir({"README.md": "static", "README.md.tmpl": "# {{ PluginName }}"})
        out = tmp_path / "out"
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "helm3", "--template-dir", str(root), "-o", str(out)])
        assert exc_info.value.code == 1
        assert "already writes" in _output(record_console)
        assert not out.exists()

    @pytest.mark.unit
    def test_invalid_name(self, tmp_path, record_console):
        out = tmp_path / "out"
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "Helm3", "-o", str(out)])
        assert exc_info.value.code == 1
        assert "Invalid parameter PluginName" in _output(record_console)
        assert not out.exists()

    @pytest.mark.unit
    def test_reserved_name(self, tmp_path, record_console):
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "porter", "-o", str(tmp_path / "out")])
        assert exc_info.value.code == 1
        assert "reserved" in _output(record_console)

    @pytest.mark.unit
    def test_missing_template_dir(self, tmp_path, record_console):
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "helm3", "--template-dir", str(tmp_path / "nope"), "-o", str(tmp_path / "o")])
        assert exc_info.value.code == 1
        assert "does not exist" in _output(record_console)

    @pytest.mark.unit
    def test_unknown_template(self, tmp_path, record_console):
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "helm3", "--template", "nope", "-o", str(tmp_path / "o")])
        assert exc_info.value.code == 1
        assert "Unknown bundled template 'nope'" in _output(record_console)

    @pytest.mark.unit
    def test_invalid_env_config(self, tmp_path, monkeypatch, record_console):
        monkeypatch.setenv("SKELETOR_ON_CONFLICT", "merge")
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "helm3", "-o", str(tmp_path / "o")])
        assert exc_info.value.code == 1
        assert "Invalid configuration" in _output(record_console)

    @pytest.mark.unit
    def test_render_failure_reports_partial_output(self, make_template_dir, tmp_path, record_console):
        root = make_template_dir({"a.txt": "fine", "b.txt.tmpl": "{{ Description }}"})
        out = tmp_path / "out"
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "helm3", "--template-dir", str(root), "-o", str(out)])
        assert exc_info.value.code == 1
        output = _output(record_console)
        assert "b.txt.tmpl" in output
        assert "unresolved reference to Description" in output
        assert "1 file(s) were already written" in output
        assert (out / "a.txt").exists()

    @pytest.mark.unit
    def test_on_conflict_fail(self, make_template_dir, tmp_path, record_console):
        root = make_template_dir({"a.txt": "new"})
        out = tmp_path / "out"
        out.mkdir()
        (out / "a.txt").write_text("old")
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "helm3", "--template-dir", str(root), "-o", str(out), "--on-conflict", "fail"])
        assert exc_info.value.code == 1
        assert "destination file already exists" in _output(record_console)
        assert (out / "a.txt").read_text() == "old"

    @pytest.mark.unit
    def test_flag_overrides_env(self, make_template_dir, tmp_path, monkeypatch, record_console):
        monkeypatch.setenv("SKELETOR_ON_CONFLICT", "fail")
        root = make_template_dir({"a.txt": "new"})
        out = tmp_path / "out"
        out.mkdir()
        (out / "a.txt").write_text("old")
        main(["create", "--name", "helm3", "--template-dir", str(root), "-o", str(out), "--on-conflict", "skip"])
        assert (out / "a.txt").read_text() == "old"
        assert "Skipped (existing)" in _output(record_console)
