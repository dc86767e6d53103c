"""Prompts for free-form visual analysis of journey screenshots."""

from __future__ import annotations

from pathlib import Path

VISUAL_ANALYSIS_SYSTEM_PROMPT = (
    "You are a senior product designer reviewing screenshots of a web product. "
    "Be concise and focus on the issues that matter most to real users."
)


def build_visual_analysis_prompt(screenshots: list[str]) -> str:
    names = ", ".join(Path(s).name for s in screenshots)
    return (
        "Analyze these product UI screenshots and provide insights on:\n\n"
        "1. Visual design quality and consistency\n"
        "2. User interface clarity and intuitiveness\n"
        "3. Navigation flow and information architecture\n"
        "4. Accessibility and usability concerns\n"
        "5. Mobile responsiveness (if applicable)\n"
        "6. Brand consistency and professional appearance\n\n"
        f"Screenshots: {names}\n\n"
        "Provide a concise analysis focusing on the most important visual and UX issues."
    )
