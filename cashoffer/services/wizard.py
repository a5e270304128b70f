"""Quote wizard controller - sequential four-step intake."""

from enum import Enum
from typing import Awaitable, Callable, Optional

from cashoffer.models.form import STEP_NAMES, ContactStep, QuoteRequestForm
from cashoffer.models.session import UserSession
from cashoffer.services.form_validators import StepData, validate_step
from cashoffer.services.submission import submit_quote_request
from cashoffer.utils.errors import PreconditionError, StepValidationError
from cashoffer.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

SubmitFn = Callable[[QuoteRequestForm, UserSession], Awaitable[str]]


class WizardState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


class WizardController:
    """Holds the step index and the validated step outputs for one seller.

    The session is passed in explicitly; the controller never looks up
    identity on its own.
    """

    TOTAL_STEPS = 4

    def __init__(self, session: Optional[UserSession], submit_fn: SubmitFn = submit_quote_request):
        self.session = session
        self.step = 1
        self.form = QuoteRequestForm()
        self.state = WizardState.EDITING
        self.quote_id: Optional[str] = None
        self.last_error: Optional[Exception] = None
        self._submit_fn = submit_fn

    @property
    def step_name(self) -> str:
        return STEP_NAMES[self.step]

    @property
    def current_step_data(self) -> Optional[StepData]:
        """Previously entered data for the current step, for re-display."""
        return getattr(self.form, self.step_name)

    def _ensure_editable(self) -> None:
        if self.state == WizardState.SUBMITTING:
            raise PreconditionError("Submission already in progress")
        if self.state == WizardState.SUBMITTED:
            raise PreconditionError("This quote request was already submitted")

    def advance(self, step_output: StepData) -> int:
        """Validate and store the current step, then move forward.

        Step 4 is the last forward state: its data is stored and the index
        stays at 4 until ``submit``.
        """
        self._ensure_editable()

        errors = validate_step(self.step, step_output)
        if errors:
            logger.debug(
                "Wizard step rejected",
                step=self.step,
                invalid_fields=sorted(errors),
            )
            raise StepValidationError(errors, step=self.step)

        setattr(self.form, self.step_name, step_output)
        if self.step < self.TOTAL_STEPS:
            self.step += 1
        return self.step

    def retreat(self) -> int:
        """Go back one step; entered data is kept."""
        self._ensure_editable()
        if self.step > 1:
            self.step -= 1
        return self.step

    def _check_preconditions(self) -> None:
        if self.session is None:
            raise PreconditionError(
                "You must be logged in to submit a property. Please log in and try again.",
                missing=["authentication"],
            )
        if not self.session.is_verified:
            raise PreconditionError(
                "Please verify your email address before requesting an offer.",
                missing=["email_verification"],
            )
        missing = self.form.missing_steps()
        if missing:
            raise PreconditionError(
                f"Missing required form data: {missing[0]}. Please go back and complete all steps.",
                missing=missing,
            )
        for number, name in STEP_NAMES.items():
            errors = validate_step(number, getattr(self.form, name))
            if errors:
                raise StepValidationError(errors, step=number)

    async def submit(self, contact: Optional[ContactStep] = None) -> str:
        """Hand the completed form to the submission pipeline exactly once."""
        self._ensure_editable()
        if contact is not None:
            if self.step != self.TOTAL_STEPS:
                raise PreconditionError(
                    f"Missing required form data: {self.step_name}",
                    missing=self.form.missing_steps(),
                )
            self.advance(contact)

        self._check_preconditions()

        self.state = WizardState.SUBMITTING
        logger.info("Wizard submitting", user_id=mask_user_id(self.session.user_id))
        try:
            quote_id = await self._submit_fn(self.form, self.session)
        except Exception as e:
            self.state = WizardState.FAILED
            self.last_error = e
            logger.warning(
                "Wizard submission failed",
                user_id=mask_user_id(self.session.user_id),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        self.state = WizardState.SUBMITTED
        self.quote_id = quote_id
        self.last_error = None
        return quote_id
