"""Tests for the LLM summarizer."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from revo.config import RevoConfig, SummarizerConfig
from revo.errors import SummarizationFailed
from revo.summarizer import (
    MONTHLY_SYSTEM_PROMPT,
    SUGGESTIONS_SYSTEM_PROMPT,
    WEEKLY_SYSTEM_PROMPT,
    Summarizer,
    parse_json_object,
)


@pytest.fixture
def enabled_config(tmp_path) -> RevoConfig:
    """Config with summarizer enabled."""
    return RevoConfig(
        db_path=tmp_path / "test.db",
        summarizer=SummarizerConfig(enabled=True, model="sonnet", timeout=30),
    )


class TestParseJsonObject:
    def test_plain_json(self):
        assert parse_json_object('{"summary": "ok"}') == {"summary": "ok"}

    def test_strips_code_fences(self):
        assert parse_json_object('```json\n{"summary": "ok"}\n```') == {"summary": "ok"}

    @pytest.mark.parametrize("content", ["", "   ", "```\n```", "not json", "[1, 2]", '"text"'])
    def test_rejects(self, content):
        with pytest.raises(SummarizationFailed):
            parse_json_object(content)


class TestSummarizer:
    def test_disabled_raises(self, tmp_path) -> None:
        config = RevoConfig(db_path=tmp_path / "t.db", summarizer=SummarizerConfig(enabled=False))
        with patch("revo.summarizer._run_claude") as mock_run:
            with pytest.raises(SummarizationFailed, match="disabled"):
                Summarizer(config).summarize_week([])
            mock_run.assert_not_called()

    def test_summarize_week(self, enabled_config) -> None:
        reflections = [{"id": "r1", "text": "Ñandú spotted"}]
        with patch("revo.summarizer._run_claude", return_value='{"summary": "Good week"}') as mock_run:
            result = Summarizer(enabled_config).summarize_week(reflections)

        assert result == {"summary": "Good week"}
        prompt, system_prompt, model, timeout = mock_run.call_args.args
        assert "Ñandú spotted" in prompt
        assert system_prompt == WEEKLY_SYSTEM_PROMPT
        assert model == "sonnet"
        assert timeout == 30

    def test_summarize_month_payload(self, enabled_config) -> None:
        with patch("revo.summarizer._run_claude", return_value='{"summary": "Month"}') as mock_run:
            Summarizer(enabled_config).summarize_month(
                [{"weekId": "2026-W06", "summary": "sixth"}], ["2026-W05"]
            )

        prompt, system_prompt = mock_run.call_args.args[:2]
        assert '"weeklySummaries"' in prompt
        assert '"weeksMissing": ["2026-W05"]' in prompt
        assert system_prompt == MONTHLY_SYSTEM_PROMPT

    def test_suggest_lists_roles(self, enabled_config) -> None:
        with patch("revo.summarizer._run_claude", return_value="{}") as mock_run:
            Summarizer(enabled_config).suggest("Long day", ["Parent", "Founder"])

        prompt, system_prompt = mock_run.call_args.args[:2]
        assert "Long day" in prompt
        assert "- Parent\n- Founder" in prompt
        assert system_prompt == SUGGESTIONS_SYSTEM_PROMPT

    def test_cli_error_becomes_summarization_failed(self, enabled_config) -> None:
        with patch("revo.summarizer._run_claude", side_effect=RuntimeError("claude CLI exited 1")):
            with pytest.raises(SummarizationFailed, match="try again"):
                Summarizer(enabled_config).summarize_week([])

    def test_missing_cli(self, enabled_config) -> None:
        with patch("revo.summarizer._run_claude", side_effect=FileNotFoundError("claude")):
            with pytest.raises(SummarizationFailed):
                Summarizer(enabled_config).summarize_week([])

    def test_undecodable_output(self, enabled_config) -> None:
        error = UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte")
        with patch("revo.summarizer._run_claude", side_effect=error):
            with pytest.raises(SummarizationFailed):
                Summarizer(enabled_config).summarize_week([])

    def test_cli_not_executable(self, enabled_config) -> None:
        with patch("revo.summarizer._run_claude", side_effect=PermissionError("claude")):
            with pytest.raises(SummarizationFailed):
                Summarizer(enabled_config).summarize_week([])

    def test_timeout(self, enabled_config) -> None:
        with patch(
            "revo.summarizer._run_claude",
            side_effect=subprocess.TimeoutExpired(cmd="claude", timeout=30),
        ):
            with pytest.raises(SummarizationFailed, match="timed out"):
                Summarizer(enabled_config).summarize_week([])

    def test_invalid_json(self, enabled_config) -> None:
        with patch("revo.summarizer._run_claude", return_value="Sure! Here is your summary"):
            with pytest.raises(SummarizationFailed, match="invalid JSON"):
                Summarizer(enabled_config).summarize_week([])


class TestRunClaude:
    def test_passes_model_and_timeout(self) -> None:
        from revo.summarizer import _run_claude

        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=" {} \n", stderr="")
        with patch("revo.summarizer.subprocess.run", return_value=completed) as mock_run:
            assert _run_claude("prompt", "system", model="haiku", timeout=5) == "{}"

        cmd = mock_run.call_args.args[0]
        assert cmd[:2] == ["claude", "-p"]
        assert cmd[-2:] == ["--model", "haiku"]
        assert mock_run.call_args.kwargs["timeout"] == 5
        assert mock_run.call_args.kwargs["input"] == "prompt"

    def test_non_zero_exit(self) -> None:
        from revo.summarizer import _run_claude

        completed = subprocess.CompletedProcess(args=[], returncode=2, stdout="", stderr="auth expired")
        with patch("revo.summarizer.subprocess.run", return_value=completed):
            with pytest.raises(RuntimeError, match="auth expired"):
                _run_claude("prompt", "system")
