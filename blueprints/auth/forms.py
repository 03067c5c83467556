"""
Authentication form definitions for the admin back office.

Forms:
    LoginForm: Admin sign-in
    SignupForm: Admin sign-up, restricted to the admin email domain
"""

from flask import current_app
from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField, SubmitField, ValidationError
from wtforms.validators import DataRequired, EqualTo, Length

from core.utils import is_valid_email


class ValidEmail:
    """WTForms validator using the application's email address check."""

    def __init__(self, message: str = "Please enter a valid email address.") -> None:
        self.message = message

    def __call__(self, form, field) -> None:
        if not is_valid_email(field.data):
            raise ValidationError(self.message)


class LoginForm(FlaskForm):
    """Form for admin authentication."""

    email = StringField('Email', validators=[
        DataRequired(message="Please enter your email address."),
        ValidEmail()
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message="Please enter your password.")
    ])
    submit = SubmitField('Sign In')


class SignupForm(FlaskForm):
    """Form for admin sign-up."""

    email = StringField('Email', validators=[
        DataRequired(message="Email address is required."),
        ValidEmail(),
        Length(max=255, message="Email address is too long.")
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message="Password is required.")
    ])
    confirm_password = PasswordField('Confirm Password', validators=[
        DataRequired(message="Please confirm your password."),
        EqualTo('password', message="Passwords do not match")
    ])
    submit = SubmitField('Create Account')

    def validate_password(self, field):
        """Check the configured minimum length."""
        min_length = current_app.config.get('PASSWORD_MIN_LENGTH', 6)
        if len(field.data or '') < min_length:
            raise ValidationError(f"Password must be at least {min_length} characters")
