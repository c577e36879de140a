"""
Input Validation

Store operations accept either pydantic input models or plain dicts.
Everything passes through here first, in two stages:

STAGE 1 - SCHEMA VALIDATION:
- Types, required fields, positive amounts (pydantic)

STAGE 2 - SEMANTIC VALIDATION:
- Absurd amounts
- Dates unreasonably far in the future

Errors reject the operation with a VALIDATION_ERROR result.
Warnings are logged and let the operation through.

IMPORTANT: Validation NEVER silently fixes issues.
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finquest.config import get_settings
from finquest.models.goals import GoalInput
from finquest.models.ledger import TransactionInput
from finquest.models.money import to_money
from finquest.models.results import ValidationIssue, ValidationResult

M = TypeVar("M", bound=BaseModel)

FUTURE_DATE_WARNING_DAYS = 365


def _issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "input"
        issues.append(ValidationIssue(
            field=field,
            issue_type=err["type"],
            message=f"{field}: {err['msg']}",
            severity="error",
        ))
    return issues


class InputValidator:
    """Turns raw caller input into validated models, or a list of issues."""

    def __init__(
        self,
        max_transaction_value: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if max_transaction_value is None:
            max_transaction_value = get_settings().app.max_transaction_value
        self._max_value = to_money(max_transaction_value)
        self._clock = clock or datetime.now

    def _parse(self, model_cls: Type[M], data: Union[M, dict, Any]) -> tuple[Optional[M], list[ValidationIssue]]:
        if isinstance(data, model_cls):
            return data, []
        if isinstance(data, BaseModel):
            data = data.model_dump()
        try:
            return model_cls.model_validate(data), []
        except PydanticValidationError as e:
            return None, _issues_from_pydantic(e)

    def _check_amount(self, field: str, value: Decimal) -> list[ValidationIssue]:
        if value > self._max_value:
            return [ValidationIssue(
                field=field,
                issue_type="suspicious_value",
                message=f"{field}: {value} exceeds the maximum of {self._max_value}",
                severity="error",
            )]
        return []

    def _check_future(self, field: str, when: Optional[datetime]) -> list[ValidationIssue]:
        if when is None:
            return []
        if when > self._clock() + timedelta(days=FUTURE_DATE_WARNING_DAYS):
            return [ValidationIssue(
                field=field,
                issue_type="future_date",
                message=f"{field}: {when.date()} is more than a year ahead",
                severity="warning",
            )]
        return []

    def _result(self, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            is_valid=not any(i.severity == "error" for i in issues),
            issues=issues,
        )

    def validate_transaction(
        self,
        data: Union[TransactionInput, dict],
    ) -> tuple[Optional[TransactionInput], ValidationResult]:
        model, issues = self._parse(TransactionInput, data)
        if model is not None:
            issues += self._check_amount("value", model.value)
            issues += self._check_future("date", model.date)
        result = self._result(issues)
        return (model if result.is_valid else None), result

    def validate_goal(
        self,
        data: Union[GoalInput, dict],
    ) -> tuple[Optional[GoalInput], ValidationResult]:
        model, issues = self._parse(GoalInput, data)
        if model is not None:
            issues += self._check_amount("target_value", model.target_value)
        result = self._result(issues)
        return (model if result.is_valid else None), result

    def validate_amount(
        self,
        amount: Any,
        field: str = "amount",
    ) -> tuple[Optional[Decimal], ValidationResult]:
        """A strictly positive money amount."""
        try:
            value = to_money(amount)
        except (InvalidOperation, TypeError, ValueError):
            return None, self._result([ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field}: {amount!r} is not a number",
                severity="error",
            )])

        if not value.is_finite() or value <= 0:
            return None, self._result([ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} must be greater than zero",
                severity="error",
            )])

        result = self._result(self._check_amount(field, value))
        return (value if result.is_valid else None), result
