"""Forms for creating a schedule and adjusting its view."""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import SelectField, StringField, SubmitField
from wtforms.validators import DataRequired, Length, ValidationError

from schedule_app.services.timeslots import GRANULARITY_CHOICES, parse_clock, time_options


def _clock_choices() -> list[tuple[str, str]]:
    return [(value, value) for value in time_options()]


def _granularity_choices() -> list[tuple[str, str]]:
    return [(str(value), f"{value} minutes") for value in GRANULARITY_CHOICES]


class _WindowMixin:
    def validate_window_end(self, field) -> None:
        if self.window_start.errors or field.errors:
            return
        try:
            start = parse_clock(self.window_start.data)
            end = parse_clock(field.data, allow_end_of_day=True)
        except ValueError as exc:
            raise ValidationError("window_invalid") from exc
        if end <= start:
            raise ValidationError("window_invalid")


class ScheduleForm(_WindowMixin, FlaskForm):
    """Home page form: what the schedule is called and which hours it shows."""

    title = StringField("Schedule Name", validators=[DataRequired(message="title_required"), Length(max=120)])
    icon = StringField("Icon", default="📅", validators=[Length(max=8)])
    window_start = SelectField("Start Time", choices=_clock_choices(), default="09:00")
    window_end = SelectField("End Time", choices=_clock_choices() + [("24:00", "24:00")], default="17:00")
    submit = SubmitField("Create Schedule")


class ViewConfigForm(_WindowMixin, FlaskForm):
    window_start = SelectField("Start Time", choices=_clock_choices())
    window_end = SelectField("End Time", choices=_clock_choices() + [("24:00", "24:00")])
    granularity = SelectField("Granularity", choices=_granularity_choices())
    submit = SubmitField("Apply")
