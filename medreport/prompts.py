"""Prompt templates for report analysis and follow-up conversations."""
from __future__ import annotations

import enum
from typing import Any, Callable, Dict

DEFAULT_DETAIL_LEVEL = 3
MIN_DETAIL_LEVEL = 1
MAX_DETAIL_LEVEL = 5


class FollowUpMode(enum.Enum):
    DIET = "diet"
    EXERCISE = "exercise"
    PRESET = "preset"
    CHAT = "chat"
    GENERIC = "generic"

    @classmethod
    def parse(cls, value: Any) -> "FollowUpMode":
        """Unknown or empty modes fall back to GENERIC."""
        if value is None:
            return cls.GENERIC
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.GENERIC

    @property
    def needs_question(self) -> bool:
        return self in (FollowUpMode.PRESET, FollowUpMode.CHAT)


DETAIL_INSTRUCTIONS = {
    1: "Answer in 2-3 short sentences. Only the essentials.",
    2: "Keep it brief: a short paragraph or a few bullet points.",
    3: "Give a balanced answer with short sections and bullet points.",
    4: "Give a detailed answer with explanations for each point.",
    5: "Give a comprehensive, in-depth answer covering every relevant point with reasoning.",
}


def clamp_text(s: str, limit: int) -> str:
    return (s or "")[:limit]


def analyze_prompt(report_text: str, limit: int = 30000) -> str:
    excerpt = clamp_text(report_text, limit)
    return f"""
You are a careful medical report analyst. Read the medical report below and explain it to the patient.

Respond with EXACTLY these six numbered sections, in this order:

1. Key Findings
   - List each test or observation with its reported value and reference range, and say whether it is normal, high or low.
2. Possible Conditions
   - Name conditions the findings may point to and label each with a likelihood tier: High, Moderate or Low.
   - Give one line of reasoning per condition tied to specific findings.
3. Doctor Visit Recommendation
   - Say whether a doctor visit is recommended (Urgent / Soon / Routine / Not needed), which specialist, and why.
4. Diet Recommendations
   - Practical foods to prefer and to limit, tied to the findings.
5. Exercise Recommendations
   - Safe activity suggestions with frequency and intensity, noting any precautions.
6. Additional Insights
   - Anything else the patient should know, including follow-up tests worth discussing.

RULES:
1. Use ONLY values that appear in the report. Never invent or estimate values, ranges, dates or diagnoses.
2. If a value or section cannot be determined from the report, say "Not available in the report".
3. Use plain language a patient can understand; explain medical terms briefly.
4. This is informational, not a diagnosis. End with a one-line reminder to confirm with a doctor.

Medical report:
{excerpt}
""".strip()


def _detail_line(detail_level: int) -> str:
    return DETAIL_INSTRUCTIONS.get(detail_level, DETAIL_INSTRUCTIONS[DEFAULT_DETAIL_LEVEL])


def diet_prompt(insight: str, detail_level: int, question: str = "") -> str:
    return f"""
You are a clinical nutrition assistant. Based on the medical report analysis below, create a diet plan for the patient.

Include foods to eat, foods to avoid, a sample day of meals and hydration advice.
Tie each recommendation to a finding in the analysis. Do not invent findings or values.

DETAIL LEVEL ({detail_level}/5): {_detail_line(detail_level)}

Report analysis:
{insight}
""".strip()


def exercise_prompt(insight: str, detail_level: int, question: str = "") -> str:
    return f"""
You are a physical activity coach working with a medical team. Based on the medical report analysis below, create an exercise plan for the patient.

Include activity types, weekly frequency, duration, intensity and any precautions or activities to avoid.
Tie each recommendation to a finding in the analysis. Do not invent findings or values.

DETAIL LEVEL ({detail_level}/5): {_detail_line(detail_level)}

Report analysis:
{insight}
""".strip()


def preset_prompt(insight: str, detail_level: int, question: str = "") -> str:
    return f"""
You are a helpful medical report assistant. The patient picked a common question about their report.

QUESTION: {question}

Answer the question using only the report analysis below. If the analysis does not contain the answer, say so.
Do not invent findings or values.

DETAIL LEVEL ({detail_level}/5): {_detail_line(detail_level)}

Report analysis:
{insight}
""".strip()


def chat_prompt(insight: str, detail_level: int, question: str = "") -> str:
    return f"""
You are a friendly medical report assistant chatting with a patient about their report analysis.

Report analysis:
{insight}

PATIENT MESSAGE: {question}

Reply conversationally and answer the message using the analysis as context.
If the message asks for something the analysis cannot support, say so and suggest asking a doctor.
Do not invent findings or values.

DETAIL LEVEL ({detail_level}/5): {_detail_line(detail_level)}
""".strip()


def generic_prompt(insight: str, detail_level: int, question: str = "") -> str:
    return f"""
You are a helpful medical report assistant. Summarize the most important points of the report analysis below
and suggest sensible next steps for the patient. Do not invent findings or values.

Report analysis:
{insight}
""".strip()


FOLLOW_UP_PROMPTS: Dict[FollowUpMode, Callable[[str, int, str], str]] = {
    FollowUpMode.DIET: diet_prompt,
    FollowUpMode.EXERCISE: exercise_prompt,
    FollowUpMode.PRESET: preset_prompt,
    FollowUpMode.CHAT: chat_prompt,
    FollowUpMode.GENERIC: generic_prompt,
}


def follow_up_prompt(insight: str, mode: FollowUpMode, detail_level: int, question: str = "") -> str:
    return FOLLOW_UP_PROMPTS[mode](insight, detail_level, (question or "").strip())
