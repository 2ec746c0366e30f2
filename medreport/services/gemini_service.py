"""Gemini generateContent wrapper.

Builds prompts for report analysis and follow-up questions and returns the
model's text reply.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from medreport.errors import GenerationFailed, MissingInsight, ValidationError
from medreport.prompts import (
    DEFAULT_DETAIL_LEVEL,
    MAX_DETAIL_LEVEL,
    MIN_DETAIL_LEVEL,
    FollowUpMode,
    analyze_prompt,
    clamp_text,
    follow_up_prompt,
)

NO_INSIGHT = "No insight returned."


def first_candidate_text(payload: Any) -> str:
    """Text of the first part of the first candidate, or the NO_INSIGHT sentinel."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return NO_INSIGHT
    if not isinstance(text, str) or not text.strip():
        return NO_INSIGHT
    return text


def parse_detail_level(value: Any) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_DETAIL_LEVEL
    message = f"detailLevel must be an integer between {MIN_DETAIL_LEVEL} and {MAX_DETAIL_LEVEL}"
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(message)
    try:
        level = int(value)
    except (TypeError, ValueError):
        raise ValidationError(message)
    if not MIN_DETAIL_LEVEL <= level <= MAX_DETAIL_LEVEL:
        raise ValidationError(message)
    return level


def _optional_text(value: Any, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60,
        max_input_chars: int = 30000,
    ):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.max_input_chars = max_input_chars

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "GeminiClient":
        return cls(
            api_key=config.get("GEMINI_API_KEY", ""),
            model=config.get("GEMINI_MODEL", "gemini-2.0-flash"),
            api_base=config.get("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"),
            timeout=float(config.get("GEMINI_TIMEOUT", 60)),
            max_input_chars=int(config.get("GEMINI_MAX_INPUT_CHARS", 30000)),
        )

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def ready(self) -> Tuple[bool, str]:
        if not self.api_key:
            return False, "GEMINI_API_KEY is missing"
        return True, ""

    def generate(self, prompt: str) -> str:
        ok, msg = self.ready()
        if not ok:
            raise GenerationFailed(msg)
        body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            res = requests.post(
                self.endpoint,
                headers={"x-goog-api-key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            res.raise_for_status()
        except requests.RequestException as e:
            raise GenerationFailed(f"Gemini request failed: {type(e).__name__}") from e
        try:
            payload = res.json()
        except ValueError as e:
            raise GenerationFailed("Gemini returned a malformed response") from e
        if not isinstance(payload, dict):
            raise GenerationFailed("Gemini returned a malformed response")
        return first_candidate_text(payload)

    def analyze(self, raw_text: str) -> str:
        return self.generate(analyze_prompt(raw_text or "", limit=self.max_input_chars))

    def follow_up(
        self,
        prior_insight: Optional[str],
        mode: Any,
        user_message: Optional[str] = None,
        detail_level: Any = None,
    ) -> str:
        insight = _optional_text(prior_insight, "insight")
        if not insight:
            raise MissingInsight()
        if not isinstance(mode, FollowUpMode):
            mode = FollowUpMode.parse(mode)
        level = parse_detail_level(detail_level)
        question = _optional_text(user_message, "userMessage")
        if mode.needs_question and not question:
            raise ValidationError("userMessage is required for this mode")
        prompt = follow_up_prompt(clamp_text(insight, self.max_input_chars), mode, level, question)
        return self.generate(prompt)
