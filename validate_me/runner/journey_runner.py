"""Journey runner — drives a persona through the product with Playwright."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright

from validate_me.models.config import ValidationConfig
from validate_me.models.journey import JourneyResult, StepRecord
from validate_me.personas import Persona

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_run_id(now: datetime | None = None) -> str:
    """Filesystem-safe ISO timestamp, e.g. ``2025-01-01T10-30-00``."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S")


class JourneyStepError(Exception):
    """A scripted journey step failed; the journey stops at that step."""


class JourneyRunner:
    """Runs the scripted seven-step journey for one persona and records evidence."""

    def __init__(
        self,
        config: ValidationConfig,
        persona: Persona,
        reports_root: Path | None = None,
        run_id: str | None = None,
    ):
        self.config = config
        self.persona = persona
        self.run_id = run_id or generate_run_id()
        root = Path(reports_root or config.reports_root)
        self.reports_dir = root / f"{self.run_id}-{persona.id}"
        self.result = JourneyResult(
            run_id=self.run_id,
            persona_id=persona.id,
            persona_goal=persona.goal,
            persona_task=persona.task,
            product_url=config.product_url,
            reports_dir=str(self.reports_dir),
            timestamp=_now_iso(),
            config=config.redacted(),
        )
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None

    async def setup(self) -> None:
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Created report directory: %s", self.reports_dir)

        logger.info("Launching browser (headless=%s)...", self.config.headless)
        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        self.page = await self.browser.new_page()
        self.page.set_default_timeout(self.config.step_timeout_ms)
        await self.page.set_viewport_size(
            {"width": self.config.viewport.width, "height": self.config.viewport.height}
        )

    async def execute_persona(self) -> JourneyResult:
        """Run every journey step, taking a screenshot after each."""
        logger.info("Running persona: %s", self.persona.id)
        logger.info("Goal: %s", self.persona.goal)
        logger.info("Task: %s", self.persona.task)

        await self.execute_step("navigate", "Navigate to product", self._navigate)
        await self.take_screenshot("navigate")

        await self.execute_step("wait_for_page", "Wait for page to load", self._wait_for_page)
        await self.take_screenshot("page-loaded")

        await self.execute_step("analyze_page", "Analyze page structure", self._analyze_page)
        await self.take_screenshot("page-analysis")

        await self.execute_step("find_auth", "Look for authentication elements", self._find_auth)
        await self.take_screenshot("auth-search")

        await self.execute_step("attempt_auth", "Attempt authentication", self._attempt_auth)
        await self.take_screenshot("auth-attempt")

        await self.execute_step("execute_task", "Execute persona-specific task", self._execute_task)
        await self.take_screenshot("task-execution")

        await self.execute_step("final_state", "Capture final page state", self._final_state)
        await self.take_screenshot("final-state")

        logger.info("Persona execution completed successfully")
        return self.result

    async def execute_step(
        self,
        step_id: str,
        description: str,
        action: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run one step, recording timing and outcome. Failures are re-raised."""
        logger.info("Executing: %s - %s", step_id, description)
        start = time.monotonic()
        timestamp = _now_iso()
        try:
            result = await action()
        except Exception as e:
            duration = int((time.monotonic() - start) * 1000)
            self.result.steps.append(StepRecord(
                step_id=step_id, description=description, timestamp=timestamp,
                success=False, duration_ms=duration, error=str(e),
            ))
            logger.error("Step %s failed after %dms: %s", step_id, duration, e)
            raise JourneyStepError(f"Step '{step_id}' failed: {e}") from e

        duration = int((time.monotonic() - start) * 1000)
        self.result.steps.append(StepRecord(
            step_id=step_id, description=description, timestamp=timestamp,
            success=True, duration_ms=duration, result=result,
        ))
        logger.info("Step completed in %dms", duration)
        return result

    async def take_screenshot(self, name: str) -> str | None:
        index = len(self.result.screenshots) + 1
        path = self.reports_dir / f"{index:02d}-{name}.png"
        try:
            await self.page.screenshot(path=str(path), full_page=True)
        except Exception as e:
            logger.warning("Screenshot failed for %s: %s", name, e)
            return None
        self.result.screenshots.append(str(path))
        logger.debug("Screenshot saved: %s", path)
        return str(path)

    async def cleanup(self) -> None:
        """Release page, browser and Playwright; each is released even if an earlier one fails."""
        page, browser, playwright = self.page, self.browser, self._playwright
        self.page = self.browser = self._playwright = None
        try:
            if page:
                await page.close()
        finally:
            try:
                if browser:
                    await browser.close()
            finally:
                if playwright:
                    await playwright.stop()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _navigate(self) -> None:
        await self.page.goto(self.config.product_url, wait_until="networkidle")

    async def _wait_for_page(self) -> None:
        await self.page.wait_for_load_state("domcontentloaded")

    async def _analyze_page(self) -> dict:
        return {
            "title": await self.page.title(),
            "buttons": await self.page.locator("button").count(),
            "inputs": await self.page.locator("input").count(),
            "links": await self.page.locator("a").count(),
            "forms": await self.page.locator("form").count(),
        }

    async def _find_auth(self) -> dict:
        return {
            "sign_in_elements": await self.page.locator("text=/sign.?in|log.?in|auth/i").count(),
            "email_inputs": await self.page.locator('input[type="email"]').count(),
            "password_inputs": await self.page.locator('input[type="password"]').count(),
        }

    async def _attempt_auth(self) -> dict:
        email_input = self.page.locator('input[type="email"]').first
        password_input = self.page.locator('input[type="password"]').first
        if await email_input.count() == 0 or await password_input.count() == 0:
            return {"attempted": False, "success": False}

        await email_input.fill(self.config.test_email)
        await password_input.fill(self.config.test_password)

        submit = self.page.locator('button[type="submit"], input[type="submit"]').first
        if await submit.count() == 0:
            return {"attempted": False, "success": False}
        await submit.click()
        await self.page.wait_for_timeout(2000)
        return {"attempted": True, "success": True}

    async def _execute_task(self) -> dict:
        buttons = await self.page.locator("button").all()
        if buttons:
            await buttons[0].click()
            await self.page.wait_for_timeout(1000)

        inputs = await self.page.locator("input").all()
        for field in inputs[:2]:
            if await field.get_attribute("type") in ("text", "search"):
                await field.fill(f"Test input for {self.persona.id}")

        return {"interactions": len(buttons) + len(inputs)}

    async def _final_state(self) -> dict:
        return {
            "title": await self.page.title(),
            "url": self.page.url,
            "content_length": len(await self.page.content()),
        }
