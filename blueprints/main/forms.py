"""
Forms for the public pages.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, SubmitField
from wtforms.validators import DataRequired, Length


class UnsubscribeForm(FlaskForm):
    """Form for leaving the newsletter."""
    email = StringField('Email', validators=[
        DataRequired(message="Please enter your email address"),
        Length(max=255)
    ])
    submit = SubmitField('Unsubscribe')
