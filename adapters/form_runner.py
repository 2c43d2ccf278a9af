"""
Multi-step application form handling.

FormStepFiller fills the inputs it recognizes on the current step.
MultiStepFormRunner repeats fill -> classify -> act until the application is
submitted, and fails loudly on a step it cannot classify or when the step
bound is reached.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from playwright.async_api import Page

from core.errors import FormStepLimitError, PlatformError, UnrecognizedFormStateError
from core.form_fields import (
    FieldRole,
    classify_field,
    classify_form_step,
    pick_radio_option,
    pick_select_option,
    select_is_unset,
)
from core.models import ApplicantProfile, FormStep
from .actions import PageActions

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 15

TEXT_INPUTS = (
    "textarea, input[type='text'], input[type='email'], input[type='tel'], input:not([type])"
)
REQUIRED_CHECKBOXES = "input[type='checkbox'][required], input[type='checkbox'][aria-required='true']"

LABEL_SCRIPT = """el => {
    const label = el.labels && el.labels.length ? el.labels[0].innerText : '';
    return label || el.getAttribute('aria-label') || '';
}"""
OPTIONS_SCRIPT = "el => Array.from(el.options).map(o => [o.value, o.text])"


@dataclass(frozen=True)
class StepControls:
    """Selectors for the step controls and the submission outcome markers."""
    continue_button: str
    review_button: str
    submit_button: str
    success: Optional[str] = None
    error: Optional[str] = None
    form_container: Optional[str] = None


class FormStepFiller:
    """Fills recognized inputs on one form step. Per-field failures are skipped."""

    def __init__(self, profile: ApplicantProfile, root_selector: Optional[str] = None):
        self.profile = profile
        self.root_selector = root_selector

    def value_for(self, role: FieldRole) -> str:
        values = {
            FieldRole.COVER_LETTER: self.profile.cover_letter,
            FieldRole.EMAIL: self.profile.email,
            FieldRole.PHONE: self.profile.phone,
            FieldRole.FULL_NAME: self.profile.full_name,
            FieldRole.FIRST_NAME: self.profile.first_name,
            FieldRole.LAST_NAME: self.profile.last_name,
        }
        return values.get(role) or ""

    async def fill(self, page: Page) -> int:
        """Fill the current step; returns how many fields were changed."""
        scope = page.locator(self.root_selector).first if self.root_selector else page
        filled = 0
        filled += await self._fill_text_fields(scope)
        filled += await self._fill_selects(scope)
        filled += await self._check_required_checkboxes(scope)
        filled += await self._fill_radio_groups(scope)
        filled += await self._attach_resume(scope)
        return filled

    async def _fill_text_fields(self, scope: Any) -> int:
        filled = 0
        for field in await scope.locator(TEXT_INPUTS).all():
            try:
                if not await field.is_visible() or await field.input_value():
                    continue
                label = await field.evaluate(LABEL_SCRIPT)
                placeholder = await field.get_attribute("placeholder")
                value = self.value_for(classify_field(label, placeholder))
                if value:
                    await field.fill(value)
                    filled += 1
            except Exception as e:
                logger.debug(f"Skipping text field: {e}")
        return filled

    async def _fill_selects(self, scope: Any) -> int:
        filled = 0
        for select in await scope.locator("select").all():
            try:
                options = await select.evaluate(OPTIONS_SCRIPT)
                if not select_is_unset(await select.input_value(), options):
                    continue
                choice = pick_select_option(options)
                if choice is not None:
                    await select.select_option(value=choice)
                    filled += 1
            except Exception as e:
                logger.debug(f"Skipping select: {e}")
        return filled

    async def _check_required_checkboxes(self, scope: Any) -> int:
        filled = 0
        for checkbox in await scope.locator(REQUIRED_CHECKBOXES).all():
            try:
                if not await checkbox.is_checked():
                    await checkbox.check(force=True)
                    filled += 1
            except Exception as e:
                logger.debug(f"Skipping checkbox: {e}")
        return filled

    async def _fill_radio_groups(self, scope: Any) -> int:
        groups: Dict[str, List[Any]] = OrderedDict()
        for radio in await scope.locator("input[type='radio']").all():
            try:
                name = await radio.get_attribute("name") or ""
            except Exception as e:
                logger.debug(f"Skipping radio: {e}")
                continue
            groups.setdefault(name, []).append(radio)

        filled = 0
        for name, radios in groups.items():
            try:
                if any([await radio.is_checked() for radio in radios]):
                    continue
                labels = [await radio.evaluate(LABEL_SCRIPT) for radio in radios]
                index = pick_radio_option(labels)
                if index is not None:
                    await radios[index].check(force=True)
                    filled += 1
            except Exception as e:
                logger.debug(f"Skipping radio group {name}: {e}")
        return filled

    async def _attach_resume(self, scope: Any) -> int:
        if not self.profile.resume_path:
            return 0
        filled = 0
        for upload in await scope.locator("input[type='file']").all():
            try:
                if await upload.evaluate("el => el.files && el.files.length > 0"):
                    continue
                await upload.set_input_files(self.profile.resume_path)
                filled += 1
            except Exception as e:
                logger.debug(f"Skipping file input: {e}")
        return filled


class MultiStepFormRunner:
    """
    Drives a multi-step application form to submission.

    Each iteration fills the step, then acts on exactly one control in the
    order submit > review > continue.
    """

    def __init__(
        self,
        platform: str,
        actions: PageActions,
        controls: StepControls,
        filler: FormStepFiller,
        max_steps: int = DEFAULT_MAX_STEPS,
        log_prefix: str = "",
    ):
        self.platform = platform
        self.actions = actions
        self.controls = controls
        self.filler = filler
        self.max_steps = max_steps
        self.log_prefix = log_prefix or f"[{platform}]"
        self.steps_taken: List[FormStep] = []

    async def detect_step(self, page: Page) -> FormStep:
        return classify_form_step(
            has_submit=await self.actions.element_exists(page, self.controls.submit_button),
            has_review=await self.actions.element_exists(page, self.controls.review_button),
            has_continue=await self.actions.element_exists(page, self.controls.continue_button),
        )

    async def run(self, page: Page) -> bool:
        """Returns True once the submission is confirmed; raises otherwise."""
        for step_number in range(1, self.max_steps + 1):
            filled = await self.filler.fill(page)
            step = await self.detect_step(page)
            self.steps_taken.append(step)
            logger.info(f"{self.log_prefix} Form step {step_number}: {step.value} ({filled} fields filled)")

            if step is FormStep.SUBMIT:
                await self._press(page, self.controls.submit_button, step)
                await self.actions.delay(1.5, 3.0)
                return await self._confirm_submission(page)
            if step is FormStep.REVIEW:
                await self._press(page, self.controls.review_button, step)
            elif step is FormStep.CONTINUE:
                await self._press(page, self.controls.continue_button, step)
            else:
                raise UnrecognizedFormStateError(
                    self.platform,
                    f"Unrecognized form state at step {step_number}",
                    {"steps": [s.value for s in self.steps_taken]},
                )
            await self.actions.delay()

        raise FormStepLimitError(
            self.platform,
            f"Form not submitted after {self.max_steps} steps",
            {"steps": [s.value for s in self.steps_taken]},
        )

    async def _press(self, page: Page, selector: str, step: FormStep):
        if not await self.actions.click(page, selector):
            raise PlatformError(self.platform, f"Could not press the {step.value} button")

    async def _confirm_submission(self, page: Page) -> bool:
        controls = self.controls
        if controls.error and await self.actions.element_exists(page, controls.error):
            message = await self.actions.get_text(page, controls.error) or "error message shown"
            raise PlatformError(self.platform, f"Application was rejected: {message}")
        if controls.success and await self.actions.element_exists(page, controls.success, timeout_ms=5000):
            return True
        # Form closed without an explicit banner
        if controls.form_container and not await self.actions.element_exists(page, controls.form_container):
            return True
        raise PlatformError(self.platform, "Submission was not confirmed")
