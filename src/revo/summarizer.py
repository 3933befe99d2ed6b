"""LLM summarizer: weekly/monthly narratives and role coaching via Claude Code CLI.

The summarizer only produces raw JSON objects. Shape validation and coercion
belong to the callers (``WeeklySummary.from_model_result`` and friends).
"""

from __future__ import annotations

import json
import re
import subprocess
from typing import Any

import click

from revo.config import RevoConfig
from revo.errors import SummarizationFailed

WEEKLY_SYSTEM_PROMPT = (
    "You are an expert reflective coach. You will receive a JSON array of user reflections "
    "for one week. Each item contains a date, title, text, roles, and any previous AI "
    "suggestions.\n\n"
    "Return ONLY valid JSON using this exact shape:\n"
    '{"summary": "...", "wins": ["..."], "challenges": ["..."], "nextWeek": ["..."]}\n\n'
    "Guidelines:\n"
    "- Provide a concise overall summary (5-8 sentences).\n"
    "- Include the most important wins and challenges as bullet points.\n"
    "- Focus nextWeek on clear, actionable steps.\n"
    "- Do not include any commentary outside the JSON object."
)

MONTHLY_SYSTEM_PROMPT = (
    "You are an expert personal reflection coach. Analyze a set of weekly summaries and "
    "produce a meaningful monthly review.\n\n"
    "Produce:\n"
    "1. summary: a clear narrative of the month's major themes.\n"
    "2. patterns: recurring ideas, repeated problems, habits, or mindsets.\n"
    "3. emotionalTrend: emotional highs and lows, stress patterns, mindset shifts.\n"
    "4. roleTrend: how each role (entrepreneur, parent, etc.) showed up or changed.\n"
    "5. productivityTrend: focus, execution, energy, blockers, and momentum.\n"
    "6. actionSteps: 3-5 practical, achievable recommendations for next month.\n\n"
    "If weeksMissing is not empty, add a short friendly note acknowledging incomplete data "
    "but still give the best analysis possible.\n\n"
    "Return strict JSON:\n"
    '{"summary": "...", "patterns": "...", "emotionalTrend": "...", "roleTrend": "...", '
    '"productivityTrend": "...", "actionSteps": ["...", "...", "..."]}'
)

SUGGESTIONS_SYSTEM_PROMPT = (
    "You are an executive coach who provides concise, actionable guidance. For each role "
    "listed, write a single coaching suggestion of 5-7 sentences tailored to the reflection. "
    'If a role is not applicable, respond with "Not applicable" for that role. Respond ONLY '
    "with valid JSON where each key is the role name and each value is an object "
    '{"title": "...", "suggestion": "..."}. No additional commentary or formatting.'
)

FENCE_RE = re.compile(r"^```[a-zA-Z]*\n?(.*?)\n?```$", re.DOTALL)


def _run_claude(prompt: str, system_prompt: str, model: str = "", timeout: int = 120) -> str:
    """Run claude CLI in non-interactive mode, piping prompt via stdin."""
    cmd = [
        "claude",
        "-p",
        "--system-prompt",
        system_prompt,
        "--tools",
        "",
        "--no-session-persistence",
    ]
    if model:
        cmd.extend(["--model", model])
    result = subprocess.run(
        cmd,
        input=prompt,
        capture_output=True,
        text=True,
        timeout=timeout,
        encoding="utf-8",
    )
    if result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip() or "(no output)"
        msg = f"claude CLI exited {result.returncode}: {detail}"
        raise RuntimeError(msg)
    return result.stdout.strip()


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse a model response into a JSON object, tolerating ``` fences."""
    text = content.strip()
    match = FENCE_RE.match(text)
    if match:
        text = match.group(1).strip()
    if not text:
        msg = "Empty response from summarizer"
        raise SummarizationFailed(msg)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Summarizer returned invalid JSON: {exc}"
        raise SummarizationFailed(msg) from exc

    if not isinstance(parsed, dict):
        msg = f"Summarizer returned {type(parsed).__name__}, expected a JSON object"
        raise SummarizationFailed(msg)
    return parsed


class Summarizer:
    def __init__(self, config: RevoConfig) -> None:
        self._config = config

    def summarize_week(self, reflections: list[dict[str, Any]]) -> dict[str, Any]:
        """Weekly narrative from the week's reflection payloads."""
        return self._complete(json.dumps(reflections, ensure_ascii=False), WEEKLY_SYSTEM_PROMPT)

    def summarize_month(
        self,
        weekly_summaries: list[dict[str, Any]],
        weeks_missing: list[str],
    ) -> dict[str, Any]:
        """Monthly review from covering weekly summaries plus the missing-week list."""
        payload = {"weeklySummaries": weekly_summaries, "weeksMissing": weeks_missing}
        return self._complete(json.dumps(payload, ensure_ascii=False), MONTHLY_SYSTEM_PROMPT)

    def suggest(self, reflection_text: str, roles: list[str]) -> dict[str, Any]:
        """Per-role coaching suggestions for a single reflection."""
        roles_list = "\n".join(f"- {role}" for role in roles)
        prompt = f"Reflection:\n{reflection_text}\n\nRoles:\n{roles_list}"
        return self._complete(prompt, SUGGESTIONS_SYSTEM_PROMPT)

    def _complete(self, prompt: str, system_prompt: str) -> dict[str, Any]:
        settings = self._config.summarizer
        if not settings.enabled:
            msg = "Summarizer disabled in config"
            raise SummarizationFailed(msg)

        try:
            content = _run_claude(prompt, system_prompt, settings.model, settings.timeout)
        except subprocess.TimeoutExpired as exc:
            click.echo(f"  [summarizer] Timed out after {settings.timeout}s")
            msg = "Summarizer timed out, please try again"
            raise SummarizationFailed(msg) from exc
        except (RuntimeError, OSError, UnicodeDecodeError) as exc:
            click.echo(f"  [summarizer] Error: {exc}")
            msg = "Summarizer call failed, please try again"
            raise SummarizationFailed(msg) from exc

        return parse_json_object(content)
