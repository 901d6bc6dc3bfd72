"""
Submission lifecycle for a dynamic form.

A ``FormShell`` wraps one compiled schema and walks through::

    idle -> validating -> valid -> submitting -> success
                       |                     -> submit_failed
                       -> invalid

``submit`` may be called again after ``invalid``, ``submit_failed`` or
``success``, which is how a user fixes their input and resubmits.
Validation goes through the schema engine; the actual hand‑off is a
caller supplied ``submitter`` coroutine function that receives the
typed values.  A shell is tied to the schema it was created with; when
the field list changes, create a new shell from a fresh compile.
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

from ..core.errors import InvalidTransitionError
from ..schemas.field import FieldError
from .field_schema import CompiledSchema, validate_responses


logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    SUBMIT_FAILED = "submit_failed"


_TRANSITIONS = {
    SubmissionState.IDLE: {SubmissionState.VALIDATING},
    SubmissionState.VALIDATING: {SubmissionState.VALID, SubmissionState.INVALID},
    SubmissionState.VALID: {SubmissionState.SUBMITTING, SubmissionState.VALIDATING},
    SubmissionState.INVALID: {SubmissionState.VALIDATING},
    SubmissionState.SUBMITTING: {SubmissionState.SUCCESS, SubmissionState.SUBMIT_FAILED},
    SubmissionState.SUCCESS: {SubmissionState.VALIDATING},
    SubmissionState.SUBMIT_FAILED: {SubmissionState.VALIDATING},
}

Submitter = Callable[[Dict[str, Any]], Awaitable[Any]]


class FormShell:
    """Drive one form's validate and submit cycle."""

    def __init__(self, schema: CompiledSchema, name: str = "form"):
        self.schema = schema
        self.name = name
        self.state = SubmissionState.IDLE
        self.errors: Tuple[FieldError, ...] = ()
        self.values: Dict[str, Any] = {}
        self.result: Any = None
        self.failure: Optional[BaseException] = None
        self.attempts = 0

    def _move(self, target: SubmissionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"{self.name}: cannot go from {self.state.value} to {target.value}"
            )
        logger.debug("%s: %s -> %s", self.name, self.state.value, target.value)
        self.state = target

    @property
    def initial_values(self) -> Dict[str, Any]:
        return self.schema.defaults()

    def validate(self, responses: Optional[Mapping[str, Any]]) -> bool:
        """Run validation only, ending in ``valid`` or ``invalid``."""
        self._move(SubmissionState.VALIDATING)
        self.attempts += 1
        self.result = None
        self.failure = None
        outcome = validate_responses(self.schema, responses)
        if outcome.ok:
            self.errors = ()
            self.values = outcome.values
            self._move(SubmissionState.VALID)
            return True
        self.errors = outcome.errors
        self.values = {}
        self._move(SubmissionState.INVALID)
        return False

    async def submit(self, responses: Optional[Mapping[str, Any]], submitter: Submitter) -> SubmissionState:
        """Validate ``responses`` and, if valid, hand them to ``submitter``.

        Exceptions raised by the submitter are kept on ``failure`` and
        the shell ends in ``submit_failed``; they are not re‑raised so
        the caller decides how to report them.
        """
        if not self.validate(responses):
            return self.state
        self._move(SubmissionState.SUBMITTING)
        try:
            self.result = await submitter(dict(self.values))
        except Exception as exc:
            self.failure = exc
            self._move(SubmissionState.SUBMIT_FAILED)
            logger.debug("%s: submission failed: %s", self.name, exc)
            return self.state
        self._move(SubmissionState.SUCCESS)
        return self.state

    def reset(self) -> None:
        """Return to ``idle`` and clear the previous outcome."""
        if self.state in (SubmissionState.VALIDATING, SubmissionState.SUBMITTING):
            raise InvalidTransitionError(f"{self.name}: cannot reset while {self.state.value}")
        self.state = SubmissionState.IDLE
        self.errors = ()
        self.values = {}
        self.result = None
        self.failure = None
