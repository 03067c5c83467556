"""
Back office forms.

Forms include:
- PostForm: the post editor
- SubscriberAddForm and SubscriberImportForm: manual and CSV subscriber entry
- ComposeForm: freeform newsletter composition
- ActionForm: empty form carrying the CSRF token for button actions
"""

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField, FileRequired
from wtforms import SelectField, StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional as OptionalValidator, Regexp

IMAGE_EXTENSIONS = ['png', 'jpg', 'jpeg', 'gif', 'webp', 'svg']


class PostForm(FlaskForm):
    """Form for writing a new post."""
    title = StringField('Title', validators=[
        DataRequired(message="Title is required"),
        Length(max=255)
    ])
    slug = StringField('Slug', validators=[
        OptionalValidator(),
        Length(max=255),
        Regexp(r'^[a-z0-9-]+$', message="Slug may only contain lowercase letters, numbers and hyphens")
    ])
    excerpt = TextAreaField('Excerpt', validators=[OptionalValidator(), Length(max=500)])
    content = TextAreaField('Content', validators=[DataRequired(message="Content is required")])
    featured_image = StringField('Featured image URL', validators=[OptionalValidator(), Length(max=1024)])
    featured_image_file = FileField('Upload featured image', validators=[
        FileAllowed(IMAGE_EXTENSIONS, 'Please upload an image file')
    ])
    category = SelectField('Category', choices=[], validate_choice=False)
    tags = StringField('Tags', validators=[OptionalValidator(), Length(max=500)])
    save_draft = SubmitField('Save Draft')
    publish = SubmitField('Publish')


class SubscriberAddForm(FlaskForm):
    """Form for adding subscribers by hand, one or many addresses."""
    emails = TextAreaField('Email addresses', validators=[
        DataRequired(message="Please enter at least one email address")
    ])
    submit = SubmitField('Add Subscribers')


class SubscriberImportForm(FlaskForm):
    """Form for importing subscribers from a CSV or text file."""
    file = FileField('CSV file', validators=[
        FileRequired(message="Please choose a file"),
        FileAllowed(['csv', 'txt'], 'Please upload a CSV or text file')
    ])
    submit = SubmitField('Import')


class ComposeForm(FlaskForm):
    """Form for a freeform newsletter written in markdown."""
    subject = StringField('Subject', validators=[
        DataRequired(message="Subject and content are required"),
        Length(max=255)
    ])
    content = TextAreaField('Content', validators=[
        DataRequired(message="Subject and content are required")
    ])
    submit = SubmitField('Send Newsletter')


class ActionForm(FlaskForm):
    """Carries the CSRF token for single-button POST actions."""
