from flask_wtf import FlaskForm
from wtforms import (
    DateField,
    Field,
    FloatField,
    IntegerField,
    PasswordField,
    SelectField,
    StringField,
    TextAreaField,
)
from wtforms.validators import (
    DataRequired,
    Email,
    EqualTo,
    InputRequired,
    Length,
    NumberRange,
    Optional,
    Regexp,
    ValidationError,
)

from models.daily_report import IssueSeverity, WeatherCondition
from models.inventory_item import InventoryCategory
from models.milestone import MilestoneStatus
from models.project import ProjectPriority, ProjectStatus
from models.user import UserRole

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S.%fZ"]

SIGNUP_ROLE_CHOICES = [
    (UserRole.CLIENT.value, "Client"),
    (UserRole.CONTRACTOR.value, "Contractor"),
    (UserRole.ARCHITECT.value, "Architect"),
]


def _choices(enum_cls):
    return [(member.value, member.value.replace("-", " ").title()) for member in enum_cls]


class JSONField(Field):
    """Carries a JSON list or object from the request body unchanged."""

    def __init__(self, label=None, validators=None, kind=list, **kwargs):
        super().__init__(label, validators, **kwargs)
        self.kind = kind

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        value = valuelist[0]
        if not isinstance(value, self.kind):
            self.data = None
            noun = "a list" if self.kind is list else "an object"
            raise ValueError(f"Must be {noun}.")
        self.data = value


class ApiForm(FlaskForm):
    """Base for forms bound to JSON bodies. CSRF is checked by CSRFProtect."""

    class Meta:
        csrf = False


class SignupForm(ApiForm):
    username = StringField(
        "Username",
        validators=[
            DataRequired(message="Username is required."),
            Length(max=80, message="Username must be 80 characters or fewer."),
            Regexp(
                r"^[A-Za-z0-9_.-]+$",
                message="Username may only include letters, numbers, dots, hyphens, and underscores.",
            ),
        ],
    )
    name = StringField("Name", [DataRequired()])
    email = StringField("Email", [DataRequired(), Email()])
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message="Password is required."),
            Length(min=6, message="Password must be at least 6 characters."),
        ],
    )
    role = SelectField("Role", choices=SIGNUP_ROLE_CHOICES, validators=[DataRequired()])
    phone = StringField("Phone", [Optional(), Length(max=20)])
    company = StringField("Company", [Optional(), Length(max=120)])

    def validate_username(self, field):
        from models.user import User

        if User.query.filter_by(username=field.data).first():
            raise ValidationError("This username is already in use.")

    def validate_email(self, field):
        from models.user import User

        if User.query.filter_by(email=field.data).first():
            raise ValidationError("This email is already in use.")


class LoginForm(ApiForm):
    username = StringField("Username", [DataRequired()])
    password = PasswordField("Password", [DataRequired()])


class ProfileForm(ApiForm):
    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.current_user = user

    name = StringField("Name", [DataRequired(), Length(max=80)])
    email = StringField("Email", [DataRequired(), Email()])
    phone = StringField("Phone", [Optional(), Length(max=20)])
    company = StringField("Company", [Optional(), Length(max=120)])

    def validate_email(self, field):
        from models.user import User

        existing = User.query.filter_by(email=field.data).first()
        if existing and (not self.current_user or existing.id != self.current_user.id):
            raise ValidationError("This email is already in use.")


class PasswordChangeForm(ApiForm):
    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.current_user = user

    current_password = PasswordField(
        "Current Password",
        validators=[DataRequired(message="Current password is required.")],
    )
    new_password = PasswordField(
        "New Password",
        validators=[
            DataRequired(message="New password is required."),
            Length(min=6, message="Password must be at least 6 characters."),
        ],
    )
    confirm_password = PasswordField(
        "Confirm New Password",
        validators=[
            DataRequired(message="Please confirm the new password."),
            EqualTo("new_password", message="Passwords must match."),
        ],
    )

    def validate_current_password(self, field):
        if not self.current_user or not self.current_user.check_password(field.data):
            raise ValidationError("Current password is incorrect.")


class ProjectForm(ApiForm):
    name = StringField("Name", [DataRequired(), Length(max=200)])
    description = TextAreaField("Description", [Optional()])
    status = SelectField("Status", choices=_choices(ProjectStatus), validators=[Optional()])
    priority = SelectField("Priority", choices=_choices(ProjectPriority), validators=[Optional()])
    start_date = DateField("Start Date", format=DATE_FORMATS, validators=[DataRequired()])
    end_date = DateField("End Date", format=DATE_FORMATS, validators=[DataRequired()])
    actual_end_date = DateField("Actual End Date", format=DATE_FORMATS, validators=[Optional()])
    location = JSONField("Location", [Optional()], kind=dict)
    budget = JSONField("Budget", [Optional()], kind=dict)
    tags = JSONField("Tags", [Optional()])
    client_id = IntegerField("Client", [InputRequired()])
    contractor_id = IntegerField("Contractor", [Optional()])
    architect_id = IntegerField("Architect", [Optional()])

    def validate_tags(self, field):
        if field.data and not all(isinstance(tag, str) for tag in field.data):
            raise ValidationError("Tags must be strings.")


class BudgetForm(ApiForm):
    estimated = FloatField("Estimated", [Optional(), NumberRange(min=0)])
    actual = FloatField("Actual", [Optional(), NumberRange(min=0)])
    breakdown = JSONField("Breakdown", [Optional()])


class ProgressOverrideForm(ApiForm):
    progress = IntegerField(
        "Progress",
        validators=[
            InputRequired(message="Progress is required."),
            NumberRange(min=0, max=100, message="Progress must be between 0 and 100."),
        ],
    )


class MilestoneForm(ApiForm):
    project_id = IntegerField("Project", [InputRequired()])
    title = StringField("Title", [DataRequired(), Length(max=200)])
    description = TextAreaField("Description", [Optional()])
    status = SelectField("Status", choices=_choices(MilestoneStatus), validators=[Optional()])
    start_date = DateField("Start Date", format=DATE_FORMATS, validators=[DataRequired()])
    due_date = DateField("Due Date", format=DATE_FORMATS, validators=[DataRequired()])
    progress = IntegerField(
        "Progress",
        [Optional(), NumberRange(min=0, max=100, message="Progress must be between 0 and 100.")],
    )
    order = IntegerField("Order", [Optional()])
    assigned_to_id = IntegerField("Assigned To", [Optional()])
    dependency_ids = JSONField("Dependencies", [Optional()])

    def validate_dependency_ids(self, field):
        if field.data and not all(
            isinstance(value, int) and not isinstance(value, bool) for value in field.data
        ):
            raise ValidationError("Dependencies must be milestone ids.")


class MilestoneReviewForm(ApiForm):
    # Decision values are checked by the workflow so an unknown one is an invalid decision.
    status = StringField("Decision", [Optional()])
    comments = TextAreaField("Comments", [Optional(), Length(max=2000)])


class DailyReportForm(ApiForm):
    project_id = IntegerField("Project", [InputRequired()])
    date = DateField("Date", format=DATE_FORMATS, validators=[Optional()])
    work_summary = TextAreaField("Work Summary", [DataRequired(message="Work summary is required.")])
    workers_on_site = IntegerField("Workers On Site", [Optional(), NumberRange(min=0)])
    hours_worked = FloatField("Hours Worked", [Optional(), NumberRange(min=0)])
    weather = JSONField("Weather", [Optional()], kind=dict)
    equipment = JSONField("Equipment", [Optional()])
    issues = JSONField("Issues", [Optional()])
    safety_incidents = JSONField("Safety Incidents", [Optional()])
    notes = TextAreaField("Notes", [Optional()])

    def validate_weather(self, field):
        condition = (field.data or {}).get("condition")
        if condition is not None and condition not in {member.value for member in WeatherCondition}:
            raise ValidationError("Not a valid weather condition.")

    def validate_equipment(self, field):
        for entry in field.data or []:
            if not isinstance(entry, dict) or not entry.get("name"):
                raise ValidationError("Each equipment entry needs a name.")

    def validate_issues(self, field):
        self._check_entries(field, "Each issue needs a description.")

    def validate_safety_incidents(self, field):
        self._check_entries(field, "Each safety incident needs a description.")

    @staticmethod
    def _check_entries(field, message):
        severities = {member.value for member in IssueSeverity}
        for entry in field.data or []:
            if not isinstance(entry, dict) or not entry.get("description"):
                raise ValidationError(message)
            if entry.get("severity") is not None and entry["severity"] not in severities:
                raise ValidationError("Severity must be low, medium or high.")


class InventoryItemForm(ApiForm):
    project_id = IntegerField("Project", [InputRequired()])
    name = StringField("Name", [DataRequired(), Length(max=200)])
    category = SelectField("Category", choices=_choices(InventoryCategory), validators=[DataRequired()])
    description = TextAreaField("Description", [Optional()])
    unit = StringField("Unit", [DataRequired(), Length(max=40)])
    quantity = FloatField("Quantity", [InputRequired(), NumberRange(min=0)])
    min_quantity = FloatField("Minimum Quantity", [Optional(), NumberRange(min=0)])
    unit_cost = FloatField("Unit Cost", [Optional(), NumberRange(min=0)])
    supplier = JSONField("Supplier", [Optional()], kind=dict)
    location = StringField("Location", [Optional(), Length(max=200)])


class QuantityAdjustmentForm(ApiForm):
    quantity = FloatField("Quantity", [InputRequired(), NumberRange(min=0)])
    operation = StringField("Operation", [Optional()])
