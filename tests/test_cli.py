import json

from click.testing import CliRunner

from kitconf import themes
from kitconf.cli import cli
from kitconf.stages import BaseStage, MarkdownStage, Phase, StageResult


def write_metadata(root, **adapter):
    payload = {"sveltekit": {"adapter": adapter}}
    (root / "sveltin.json").write_text(json.dumps(payload), encoding="utf-8")


def test_cli_init_writes_metadata(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["init", "--css", "bulma"])
    assert result.exit_code == 0
    metadata = json.loads((tmp_path / "sveltin.json").read_text(encoding="utf-8"))
    assert metadata["theme"]["style"] == "bulma"
    assert metadata["sveltekit"]["adapter"] == {
        "pages": "build",
        "assets": "build",
        "fallback": "200.html",
    }
    assert "css_lib: bulma" in (tmp_path / "kitconf.yaml").read_text(encoding="utf-8")

    # refuses to overwrite
    result = runner.invoke(cli, ["init", "--css", "bulma"])
    assert result.exit_code != 0
    assert "Refusing" in result.output


def test_cli_init_prompts_for_css_lib(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    class FakePrompt:
        def __init__(self, answer):
            self.answer = answer

        def ask(self):
            return self.answer

    monkeypatch.setattr(
        "kitconf.cli.questionary.select", lambda *args, **kwargs: FakePrompt("unocss")
    )
    result = CliRunner().invoke(cli, ["init"])
    assert result.exit_code == 0
    metadata = json.loads((tmp_path / "sveltin.json").read_text(encoding="utf-8"))
    assert metadata["theme"]["style"] == "unocss"


def test_cli_init_aborts_on_cancelled_prompt(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    class Cancelled:
        def ask(self):
            return None

    monkeypatch.setattr("kitconf.cli.questionary.select", lambda *a, **k: Cancelled())
    result = CliRunner().invoke(cli, ["init"])
    assert result.exit_code != 0
    assert not (tmp_path / "sveltin.json").exists()


def test_cli_show_uses_metadata(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    write_metadata(tmp_path, pages="build", assets="build", fallback="200.html")
    result = CliRunner().invoke(cli, ["show", "--css", "tailwindcss"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["kit"]["adapter"] == {
        "pages": "build",
        "assets": "build",
        "fallback": "200.html",
        "precompress": False,
        "strict": True,
    }
    assert payload["extensions"][0] == ".svelte"
    assert [stage["name"] for stage in payload["preprocess"]] == [
        "mdsvex",
        "svelte-preprocess",
    ]
    assert "scss" not in payload["preprocess"][1]["options"]


def test_cli_show_fixed_without_metadata(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["show", "--fixed"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["kit"]["adapter"]["precompress"] is True
    assert payload["kit"]["adapter"]["strict"] is True


def test_cli_show_reads_kitconf_yaml(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "kitconf.yaml").write_text(
        "css_lib: vanillacss\nfixed_adapter: true\n", encoding="utf-8"
    )
    result = CliRunner().invoke(cli, ["show"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["kit"]["adapter"]["precompress"] is True
    assert payload["preprocess"][1]["options"] == {"preserve": ["ld+json"]}


def test_cli_show_missing_metadata_fails(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["show"])
    assert result.exit_code == 1
    assert "Configuration failed" in result.output
    assert "metadata file not found" in result.output


def test_cli_show_malformed_metadata_fails(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    write_metadata(tmp_path, pages="build", assets="build")
    result = CliRunner().invoke(cli, ["show"])
    assert result.exit_code == 1
    assert "fallback" in result.output


def test_cli_show_non_utf8_metadata_fails(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "sveltin.json").write_bytes(b'{"sveltekit": {"adapter": {"pages": "\xff"}}}')
    result = CliRunner().invoke(cli, ["show"])
    assert result.exit_code == 1
    assert "Configuration failed" in result.output
    assert "not valid UTF-8" in result.output


def test_cli_unknown_css_lib_from_config(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "kitconf.yaml").write_text("css_lib: nope\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["show", "--fixed"])
    assert result.exit_code != 0
    assert "Unknown CSS lib 'nope'" in result.output


def test_cli_emit_writes_config(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    write_metadata(tmp_path, pages="public", assets="public", fallback="index.html")
    result = CliRunner().invoke(cli, ["emit", "--css", "scss"])
    assert result.exit_code == 0
    source = (tmp_path / "svelte.config.js").read_text(encoding="utf-8")
    assert '"pages": "public"' in source
    assert "prependData" in source

    result = CliRunner().invoke(cli, ["emit", "--output", "out/config.js"])
    assert result.exit_code == 0
    assert (tmp_path / "out" / "config.js").exists()


class ShoutStage(BaseStage):
    name = "shout"
    phase = Phase.TRANSFORM
    options = {}

    def process(self, source, extension):
        return StageResult(source.upper())


def test_cli_emit_unknown_stage_fails(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        themes, "create_default_stages", lambda variant: [MarkdownStage(), ShoutStage()]
    )
    result = CliRunner().invoke(cli, ["emit", "--fixed"])
    assert result.exit_code == 1
    assert "No JavaScript factory known for stage 'shout'" in result.output
    assert not (tmp_path / "svelte.config.js").exists()


def test_cli_preprocess_document(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    page = tmp_path / "page.svelte.md"
    page.write_text(
        '# Hello\n\n<style lang="scss">\n.a {}\n</style>\n', encoding="utf-8"
    )
    result = CliRunner().invoke(cli, ["preprocess", "--css", "bulma", str(page)])
    assert result.exit_code == 0
    assert "<h1" in result.output
    assert '@use "src/_variables.scss" as *;' in result.output


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "kitconf" in result.output


def test_module_main_entrypoint():
    from kitconf.__main__ import main

    assert callable(main)
