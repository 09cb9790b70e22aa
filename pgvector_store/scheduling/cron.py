"""
Cron parsing for the Aurora start/stop schedule

Expressions are validated locally while the schedule policy is built, so a
malformed value fails `cdk synth` instead of failing later in EventBridge
Scheduler. Two input forms are accepted:

- a five-field string: ``minute hour day-of-month month day-of-week``. The
  weekday must be named (``MON-FRI``), since Unix cron counts ``0=SUN`` while
  EventBridge counts ``1=SUN``.
- a mapping of ``events.CronOptions`` fields (``minute``, ``hour``, ``day``,
  ``month``, ``weekDay``, ``year``), as used in ``cdk.json``. Numeric
  weekdays here follow EventBridge numbering (``1=SUN`` to ``7=SAT``).
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional, Union

from aws_cdk import aws_events as events

from ..errors import InvalidCronExpressionError

logger = logging.getLogger(__name__)

CronInput = Union[str, Mapping[str, Any]]

_MONTHS = {
    name: index + 1
    for index, name in enumerate(
        ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]
    )
}
_WEEKDAYS = {
    name: index + 1
    for index, name in enumerate(["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"])
}

# field name -> (minimum, maximum, symbolic names)
_FIELDS = {
    "minute": (0, 59, {}),
    "hour": (0, 23, {}),
    "day": (1, 31, {}),
    "month": (1, 12, _MONTHS),
    "week_day": (1, 7, _WEEKDAYS),
    "year": (1970, 2199, {}),
}

_CONTEXT_KEYS = {
    "minute": "minute",
    "hour": "hour",
    "day": "day",
    "month": "month",
    "weekDay": "week_day",
    "week_day": "week_day",
    "year": "year",
}

_STEP = re.compile(r"^(?P<base>[^/]+)/(?P<step>\d+)$")
_RANGE = re.compile(r"^(?P<start>[A-Z0-9]+)-(?P<end>[A-Z0-9]+)$")
_DAY_SPECIAL = re.compile(r"^(L|LW|\d{1,2}W)$")
_WEEKDAY_LAST = re.compile(r"^(?P<value>[A-Z0-9]+)L$")
_WEEKDAY_NTH = re.compile(r"^(?P<value>[A-Z0-9]+)#(?P<nth>[1-5])$")
_STEP_SUFFIX = re.compile(r"/\d+$")
_NTH_SUFFIX = re.compile(r"#[1-5]$")


def _value(field: str, token: str, expression: str) -> int:
    minimum, maximum, names = _FIELDS[field]
    if token in names:
        return names[token]
    if not token.isdigit():
        raise InvalidCronExpressionError(
            f"Invalid {field} value '{token}' in cron expression '{expression}'"
        )
    number = int(token)
    if number < minimum or number > maximum:
        raise InvalidCronExpressionError(
            f"{field} value {number} is outside {minimum}-{maximum} in cron expression '{expression}'"
        )
    return number


def _validate_part(field: str, part: str, expression: str) -> None:
    if part == "*":
        return

    if field == "day" and _DAY_SPECIAL.match(part):
        if part[0].isdigit():
            _value(field, part[:-1], expression)
        return

    if field == "week_day":
        if part == "L":
            return
        last = _WEEKDAY_LAST.match(part)
        if last:
            _value(field, last.group("value"), expression)
            return
        nth = _WEEKDAY_NTH.match(part)
        if nth:
            _value(field, nth.group("value"), expression)
            return

    step = _STEP.match(part)
    if step:
        if int(step.group("step")) == 0:
            raise InvalidCronExpressionError(
                f"Step of zero in {field} of cron expression '{expression}'"
            )
        part = step.group("base")
        if part == "*":
            return

    span = _RANGE.match(part)
    if span:
        start = _value(field, span.group("start"), expression)
        end = _value(field, span.group("end"), expression)
        if start > end:
            raise InvalidCronExpressionError(
                f"Descending {field} range '{part}' in cron expression '{expression}'"
            )
        return

    _value(field, part, expression)


def validate_field(field: str, value: str, expression: Optional[str] = None) -> str:
    """Validate one cron field and return it upper-cased."""
    expression = expression or value
    value = str(value).strip().upper()
    if not value:
        raise InvalidCronExpressionError(f"Empty {field} in cron expression '{expression}'")

    if value == "?":
        if field not in ("day", "week_day"):
            raise InvalidCronExpressionError(
                f"'?' is only allowed for day or weekday, not {field}, in '{expression}'"
            )
        return value

    for part in value.split(","):
        _validate_part(field, part, expression)
    return value


def _require_named_weekdays(value: str, expression: str) -> None:
    for part in value.split(","):
        part = _NTH_SUFFIX.sub("", _STEP_SUFFIX.sub("", part))
        if any(char.isdigit() for char in part):
            raise InvalidCronExpressionError(
                f"Use weekday names (SUN-SAT) instead of numbers in cron expression "
                f"'{expression}'"
            )


def _is_unset(value: Optional[str]) -> bool:
    return value is None or value in ("*", "?")


def _to_options(fields: Dict[str, str], expression: str) -> events.CronOptions:
    day = fields.get("day")
    week_day = fields.get("week_day")

    # The scheduler takes either a day-of-month or a weekday, never both.
    if not _is_unset(day) and not _is_unset(week_day):
        raise InvalidCronExpressionError(
            f"Cron expression '{expression}' sets both day-of-month and weekday"
        )
    if not _is_unset(week_day):
        day = None
    else:
        week_day = None
        if day == "?":
            day = None

    return events.CronOptions(
        minute=fields.get("minute"),
        hour=fields.get("hour"),
        day=day,
        month=fields.get("month"),
        week_day=week_day,
        year=fields.get("year"),
    )


def parse_cron(value: CronInput) -> events.CronOptions:
    """Parse a five-field cron string or a CronOptions mapping.

    Raises:
        InvalidCronExpressionError: if any field is malformed or out of range.
    """
    if isinstance(value, str):
        expression = value.strip()
        parts = expression.split()
        if len(parts) != 5:
            raise InvalidCronExpressionError(
                f"Cron expression '{expression}' must have 5 fields "
                f"(minute hour day-of-month month day-of-week), got {len(parts)}"
            )
        names = ("minute", "hour", "day", "month", "week_day")
        fields = {
            name: validate_field(name, part, expression) for name, part in zip(names, parts)
        }
        _require_named_weekdays(fields["week_day"], expression)
        return _to_options(fields, expression)

    if isinstance(value, Mapping):
        expression = str(dict(value))
        fields = {}
        for key, raw in value.items():
            if key not in _CONTEXT_KEYS:
                raise InvalidCronExpressionError(
                    f"Unknown cron field '{key}' in schedule {expression}"
                )
            fields[_CONTEXT_KEYS[key]] = validate_field(_CONTEXT_KEYS[key], str(raw), expression)
        if not fields:
            raise InvalidCronExpressionError("Cron schedule mapping is empty")
        return _to_options(fields, expression)

    raise InvalidCronExpressionError(
        f"Cron schedule must be a string or a mapping, got {type(value).__name__}"
    )


def schedule_expression(options: events.CronOptions) -> str:
    """Render parsed options as an EventBridge ``cron(...)`` expression."""
    return events.Schedule.cron(
        minute=options.minute,
        hour=options.hour,
        day=options.day,
        month=options.month,
        week_day=options.week_day,
        year=options.year,
    ).expression_string


def _absent_to_none(value: Optional[CronInput]) -> Optional[CronInput]:
    if isinstance(value, str):
        value = value.strip()
    return None if value in ("", {}) else value


class RdsScheduler:
    """
    Optional start/stop policy for the Aurora cluster.

    Both expressions absent means "no automation" and is valid. Empty or
    whitespace-only strings count as absent. Supplying only one of them
    raises InvalidCronExpressionError.
    """

    def __init__(
        self,
        restored_cron: Optional[CronInput] = None,
        stop_cron: Optional[CronInput] = None,
    ) -> None:
        restored_cron = _absent_to_none(restored_cron)
        stop_cron = _absent_to_none(stop_cron)

        if (restored_cron is None) != (stop_cron is None):
            raise InvalidCronExpressionError(
                "Both restoredCron and stopCron must be set to enable the RDS scheduler"
            )

        self.restored_cron = parse_cron(restored_cron) if restored_cron is not None else None
        self.stop_cron = parse_cron(stop_cron) if stop_cron is not None else None

    def has_cron(self) -> bool:
        return self.restored_cron is not None and self.stop_cron is not None

    @property
    def restored_expression(self) -> str:
        return schedule_expression(self.restored_cron)

    @property
    def stop_expression(self) -> str:
        return schedule_expression(self.stop_cron)

    @classmethod
    def from_context(cls, value: Optional[Mapping[str, Any]]) -> "RdsScheduler":
        """Build from the ``rdsScheduler`` context entry."""
        if not value:
            logger.debug("No rdsScheduler context, cluster runs around the clock")
            return cls()
        if not isinstance(value, Mapping):
            raise InvalidCronExpressionError(
                f"rdsScheduler context must be an object, got {type(value).__name__}"
            )
        return cls(
            restored_cron=value.get("restoredCron"),
            stop_cron=value.get("stopCron"),
        )
