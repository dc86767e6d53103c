"""Claude API client wrapper used for product evaluation."""

from __future__ import annotations

import base64
import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Optional

import anthropic

logger = logging.getLogger(__name__)

# Where prompt/response exchanges are dumped; set by the orchestrator per run
_debug_dir: Path | None = None


def set_debug_dir(path: Path) -> None:
    """Set the directory for AI exchange logs."""
    global _debug_dir
    _debug_dir = path
    _debug_dir.mkdir(parents=True, exist_ok=True)


def _get_debug_dir() -> Path:
    global _debug_dir
    if _debug_dir is None:
        _debug_dir = Path(".validate-me") / "debug"
    _debug_dir.mkdir(parents=True, exist_ok=True)
    return _debug_dir


def encode_image(path: str | Path) -> str:
    """Read an image file and return its base64 text."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


class AIClient:
    """Wrapper around the Anthropic Claude API."""

    def __init__(self, model: str = "claude-sonnet-4-20250514", max_tokens: int = 4000):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Add it to your environment before running an evaluation."
            )
        self.client = anthropic.Anthropic(api_key=api_key, timeout=300.0)
        self.model = model
        self.max_tokens = max_tokens
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        """Send a text-only request and return the response text."""
        return self._send(
            system_prompt,
            [{"type": "text", "text": user_message}],
            log_message=user_message,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    def complete_json(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> dict[str, Any]:
        """Send a request and parse the response as a JSON object."""
        text = self.complete(system_prompt, user_message, max_tokens, temperature)
        return self._parse_json_response(text)

    def complete_with_images(
        self,
        system_prompt: str,
        user_message: str,
        image_paths: list[str | Path],
        media_type: str = "image/png",
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send a request with one or more screenshots attached."""
        content: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": media_type,
                    "data": encode_image(path),
                },
            }
            for path in image_paths
        ]
        content.append({"type": "text", "text": user_message})
        return self._send(
            system_prompt,
            content,
            log_message=f"[{len(image_paths)} IMAGES ATTACHED]\n{user_message}",
            max_tokens=max_tokens,
        )

    def _send(
        self,
        system_prompt: str,
        content: list[dict[str, Any]],
        log_message: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        self._call_count += 1
        tokens = max_tokens or self.max_tokens
        logger.info(
            "Calling AI (call #%d, model=%s, max_tokens=%d)...",
            self._call_count, self.model, tokens,
        )

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": content}],
        }
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            call_start = time.time()
            response = self.client.messages.create(**kwargs)
            text = response.content[0].text
            logger.info("AI response received in %.1fs (%d chars)",
                        time.time() - call_start, len(text))
            if response.stop_reason == "max_tokens":
                logger.warning(
                    "AI response was truncated at max_tokens=%d; "
                    "consider raising ai_max_tokens in the config.", tokens,
                )
            self._save_exchange_log(self._call_count, system_prompt, log_message, text, None)
            return text
        except anthropic.APIError as e:
            logger.error("Claude API error: %s", e)
            self._save_exchange_log(self._call_count, system_prompt, log_message, "", str(e))
            raise

    @staticmethod
    def _parse_json_response(text: str) -> dict[str, Any]:
        """Parse an AI response as JSON, tolerating fences, prose and trailing commas."""
        text = text.strip()

        fence = re.search(r"```(?:json)?\s*\n(.*?)\n```", text, re.DOTALL)
        if fence:
            text = fence.group(1).strip()

        try:
            return json.loads(text, strict=False)
        except json.JSONDecodeError:
            pass

        cleaned = re.sub(r",\s*([}\]])", r"\1", text)
        first_brace = cleaned.find("{")
        last_brace = cleaned.rfind("}")
        if first_brace != -1 and last_brace > first_brace:
            cleaned = cleaned[first_brace:last_brace + 1]

        try:
            return json.loads(cleaned, strict=False)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse AI response as JSON: %s", e)
            logger.debug("Raw response (first 2000 chars):\n%s", text[:2000])
            raise ValueError(f"AI returned invalid JSON: {e}") from e

    @staticmethod
    def _save_exchange_log(
        call_number: int,
        system_prompt: str,
        user_message: str,
        response_text: str,
        error: str | None,
    ) -> None:
        """Save the full AI exchange (prompt + response) to a log file."""
        try:
            ts = time.strftime("%Y%m%d_%H%M%S")
            log_file = _get_debug_dir() / f"ai_call_{ts}_{call_number:03d}.log"
            with open(log_file, "w", encoding="utf-8") as f:
                f.write(f"=== AI CALL #{call_number} at {time.strftime('%Y-%m-%d %H:%M:%S')} ===\n\n")
                f.write(f"=== SYSTEM PROMPT ({len(system_prompt)} chars) ===\n{system_prompt}")
                f.write(f"\n\n=== USER MESSAGE ({len(user_message)} chars) ===\n{user_message}")
                f.write(f"\n\n=== RESPONSE ({len(response_text)} chars) ===\n")
                f.write(response_text if response_text else "(empty)")
                if error:
                    f.write(f"\n\n=== ERROR ===\n{error}\n")
            logger.debug("AI exchange logged to %s", log_file)
        except Exception as log_err:
            logger.debug("Failed to save AI exchange log: %s", log_err)
