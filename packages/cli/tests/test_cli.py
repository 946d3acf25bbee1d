"""Tests for the CLI entry point."""

import subprocess
from unittest.mock import MagicMock, patch

import yaml
from click.testing import CliRunner

from dialectic_cli.cli import main
from dialectic_core.errors import CompletionError, ConfigError


def _make_config(model="anthropic", anthropic_key="ant", openai_key=None):
    return {
        "github_token": None,
        "model": model,
        "model_name": None,
        "anthropic_api_key": anthropic_key,
        "openai_api_key": openai_key,
        "exclude": [],
        "review_draft_prs": False,
        "max_chars_per_file": 20000,
        "max_input_tokens": 60000,
        "framework": None,
    }


def _patch_common(mocker, config=None, token="tok"):
    """Patch config loading and token resolution for review command tests."""
    cfg = config or _make_config()
    load = mocker.patch("dialectic_cli.auth.load_config", return_value=cfg)
    mocker.patch("dialectic_cli.commands.review.resolve_github_token", return_value=token)
    mocker.patch("dialectic_cli.commands.review.get_repo", return_value=MagicMock())
    return cfg, load


class TestCLIValidation:
    def test_missing_github_token(self, mocker):
        _patch_common(mocker, token=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "GITHUB_TOKEN" in result.output

    def test_missing_anthropic_key(self, mocker):
        _patch_common(mocker, config=_make_config(model="anthropic", anthropic_key=None))

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "ANTHROPIC_API_KEY" in result.output

    def test_missing_openai_key(self, mocker):
        _patch_common(mocker, config=_make_config(model="openai", anthropic_key=None, openai_key=None))

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "OPENAI_API_KEY" in result.output

    def test_invalid_config_is_reported(self, mocker):
        mocker.patch("dialectic_cli.auth.load_config", side_effect=ConfigError("model must be one of anthropic, openai"))

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "Invalid configuration" in result.output

    def test_unknown_framework_rejected(self, mocker):
        _patch_common(mocker)
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--framework", "angular"])
        assert result.exit_code == 2


class TestCLIRunReview:
    def test_calls_run_review_with_correct_args(self, mocker):
        _patch_common(mocker)
        mock_run = mocker.patch("dialectic_cli.commands.review.run_review", return_value=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "42", "--yes"])

        assert result.exit_code == 0
        mock_run.assert_called_once()
        kwargs = mock_run.call_args.kwargs
        assert kwargs["pr_number"] == 42
        assert kwargs["auto_confirm"] is True
        assert kwargs["shadow"] is False
        assert kwargs["config"]["github_token"] == "tok"

    def test_shadow_flag_passed_through(self, mocker):
        _patch_common(mocker)
        mock_run = mocker.patch("dialectic_cli.commands.review.run_review", return_value=None)

        CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--shadow"])

        assert mock_run.call_args.kwargs["shadow"] is True

    def test_model_and_framework_become_overrides(self, mocker):
        _, load = _patch_common(mocker, config=_make_config(model="openai", openai_key="oai"))
        mocker.patch("dialectic_cli.commands.review.run_review", return_value=None)

        CliRunner().invoke(
            main, ["review", "--repo", "owner/repo", "--pr", "1", "--model", "openai", "--framework", "nestjs"]
        )

        assert load.call_args.kwargs["cli_overrides"] == {"model": "openai", "framework": "nestjs"}

    def test_config_path_option(self, mocker):
        _, load = _patch_common(mocker)
        mocker.patch("dialectic_cli.commands.review.run_review", return_value=None)

        CliRunner().invoke(main, ["--config", "ci/review.yml", "review", "--repo", "owner/repo", "--pr", "1"])

        assert load.call_args.args[0] == "ci/review.yml"

    def test_completion_error_is_reported(self, mocker):
        _patch_common(mocker)
        mocker.patch(
            "dialectic_cli.commands.review.run_review",
            side_effect=CompletionError("anthropic API failed after 3 attempts", provider="anthropic"),
        )

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])

        assert result.exit_code == 1
        assert "Review failed" in result.output

    def test_missing_pr_is_reported(self, mocker):
        _patch_common(mocker)
        mocker.patch("dialectic_cli.commands.review.run_review", side_effect=ValueError("PR #1 not found in owner/repo."))

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestCLIInteractive:
    def test_lists_open_prs(self, mocker):
        _patch_common(mocker)
        mock_pr = MagicMock()
        mock_pr.number = 7
        mock_pr.title = "Fix login bug"
        mocker.patch("dialectic_cli.commands.review.get_pull_requests", return_value=[mock_pr])
        mock_run = mocker.patch("dialectic_cli.commands.review.run_review", return_value=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo"], input="7\n")

        assert "#7" in result.output
        assert "Fix login bug" in result.output
        assert mock_run.call_args.kwargs["pr_number"] == 7

    def test_no_open_prs_exits_early(self, mocker):
        _patch_common(mocker)
        mocker.patch("dialectic_cli.commands.review.get_pull_requests", return_value=[])
        mock_run = mocker.patch("dialectic_cli.commands.review.run_review", return_value=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo"])

        assert "No open pull requests" in result.output
        mock_run.assert_not_called()


# ---------------------------------------------------------------------------
# auth.py
# ---------------------------------------------------------------------------


class TestResolveGithubToken:
    def test_returns_env_var_when_set(self, monkeypatch):
        from dialectic_cli.auth import resolve_github_token

        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token() == "env-token"

    def test_falls_back_to_gh_cli(self, monkeypatch):
        from dialectic_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="gh-token\n")
            result = resolve_github_token()
        assert result == "gh-token"

    def test_returns_none_when_gh_not_installed(self, monkeypatch):
        from dialectic_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=FileNotFoundError):
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_times_out(self, monkeypatch):
        from dialectic_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5)):
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_returns_empty(self, monkeypatch):
        from dialectic_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="   ")
            result = resolve_github_token()
        assert result is None


# ---------------------------------------------------------------------------
# patterns command
# ---------------------------------------------------------------------------


class TestPatternsCommand:
    def test_lists_builtin_patterns(self, tmp_path):
        result = CliRunner().invoke(main, ["--config", str(tmp_path / "none.yml"), "patterns"])

        assert result.exit_code == 0
        assert "prisma-tagged-template-safe" in result.output
        assert "Total patterns:" in result.output

    def test_framework_patterns_included(self, tmp_path):
        result = CliRunner().invoke(
            main, ["--config", str(tmp_path / "none.yml"), "patterns", "--framework", "nestjs", "--category", "dependency-injection"]
        )

        assert result.exit_code == 0
        assert "nestjs-circular-dependency" in result.output
        assert "prisma-tagged-template-safe" not in result.output

    def test_disabled_patterns_hidden(self, tmp_path):
        cfg = tmp_path / ".dialectic.yml"
        cfg.write_text("disabled_builtin_patterns: [knex-parameterized]\n")

        result = CliRunner().invoke(main, ["--config", str(cfg), "patterns", "--category", "sql-injection"])

        assert "knex-parameterized" not in result.output
        assert "typeorm-query-builder" in result.output

    def test_unknown_category(self, tmp_path):
        result = CliRunner().invoke(main, ["--config", str(tmp_path / "none.yml"), "patterns", "--category", "nope"])

        assert result.exit_code == 0
        assert "No false-positive patterns match" in result.output


# ---------------------------------------------------------------------------
# strategy command
# ---------------------------------------------------------------------------


class TestStrategyCommand:
    def _invoke(self, tmp_path, *args, config_text=None):
        cfg = tmp_path / ".dialectic.yml"
        if config_text is not None:
            cfg.write_text(config_text)
        return CliRunner().invoke(main, ["--config", str(cfg), "strategy", *args])

    def test_small_change(self, tmp_path):
        result = self._invoke(tmp_path, "--size", "40000")
        assert result.exit_code == 0
        assert "Strategy: SMALL" in result.output
        assert "Max Tokens: 16000" in result.output

    def test_critical_boost(self, tmp_path):
        result = self._invoke(tmp_path, "--size", "40000", "--critical")
        assert "Max Tokens: 24000" in result.output

    def test_oversized_is_skip(self, tmp_path):
        result = self._invoke(tmp_path, "--size", "900000")
        assert "Strategy: SKIP" in result.output

    def test_config_only(self, tmp_path):
        result = self._invoke(tmp_path, "--size", "900000", "--config-only", "--critical")
        assert "Strategy: SMALL" in result.output
        assert "Max Tokens: 16000" in result.output

    def test_configured_override(self, tmp_path):
        result = self._invoke(tmp_path, "--size", "100", config_text="strategies:\n  small:\n    max_tokens: 9000\n")
        assert "Max Tokens: 9000" in result.output

    def test_negative_size_rejected(self, tmp_path):
        assert self._invoke(tmp_path, "--size", "-1").exit_code == 2


# ---------------------------------------------------------------------------
# init command
# ---------------------------------------------------------------------------


class TestInitCommand:
    def test_writes_config_with_provider(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mocker.patch("dialectic_cli.commands.init._detect_repo_from_git", return_value="owner/repo")

        result = CliRunner().invoke(main, ["init"], input="openai\nnestjs\n40000\nN\n")

        assert result.exit_code == 0
        config = yaml.safe_load((tmp_path / ".dialectic.yml").read_text())
        assert config == {"model": "openai", "max_input_tokens": 40000, "framework": "nestjs"}
        assert not (tmp_path / ".github").exists()

    def test_auto_framework_not_written(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mocker.patch("dialectic_cli.commands.init._detect_repo_from_git", return_value="owner/repo")

        CliRunner().invoke(main, ["init"], input="\n\n\nN\n")

        config = yaml.safe_load((tmp_path / ".dialectic.yml").read_text())
        assert config == {"model": "anthropic", "max_input_tokens": 60000}

    def test_preserves_existing_keys(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".dialectic.yml").write_text("exclude:\n  - legacy/\n")
        mocker.patch("dialectic_cli.commands.init._detect_repo_from_git", return_value="owner/repo")

        CliRunner().invoke(main, ["init"], input="\n\n\nN\n")

        config = yaml.safe_load((tmp_path / ".dialectic.yml").read_text())
        assert config["exclude"] == ["legacy/"]

    def test_generates_workflow(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mocker.patch("dialectic_cli.commands.init._detect_repo_from_git", return_value="owner/repo")

        result = CliRunner().invoke(main, ["init"], input="anthropic\nauto\n60000\nY\n")

        assert result.exit_code == 0
        workflow = (tmp_path / ".github/workflows/dialectic.yml").read_text()
        assert "ANTHROPIC_API_KEY: ${{ secrets.ANTHROPIC_API_KEY }}" in workflow
        assert "--pr ${{ github.event.pull_request.number }}" in workflow
        assert 'pip install "dialectic[anthropic]==' in workflow
        assert yaml.safe_load(workflow)["jobs"]["review"]["runs-on"] == "ubuntu-latest"
