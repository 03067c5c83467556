"""
Schema definitions for the Newsletter API.

The schemas check the shape and types of request bodies. Presence of the
fields a broadcast needs is checked by the newsletter service, so the error
messages match between the API, the admin pages and the CLI.
"""

from marshmallow import INCLUDE, Schema, fields, validate


class BaseSchema(Schema):
    """Base schema with common configuration."""

    class Meta:
        """Schema metadata."""
        # Include unknown fields during deserialization but don't include them in the output
        unknown = INCLUDE


class SubscriptionSchema(BaseSchema):
    """Schema for subscribe and unsubscribe requests."""

    email = fields.String(
        required=True,
        validate=validate.Length(max=255),
        error_messages={"required": "Email is required"}
    )


class CustomNewsletterSchema(BaseSchema):
    """Schema for a freeform newsletter."""

    subject = fields.String(load_default='', allow_none=True)
    content = fields.String(load_default='', allow_none=True)


class PostNewsletterSchema(BaseSchema):
    """Schema for broadcasting a blog post; keys follow the editor's payload."""

    blogId = fields.Raw(load_default=None, allow_none=True)
    title = fields.String(load_default='', allow_none=True)
    slug = fields.String(load_default='', allow_none=True)
    excerpt = fields.String(load_default='', allow_none=True)
    featuredImage = fields.String(load_default=None, allow_none=True)
    content = fields.String(load_default='', allow_none=True)


subscription_schema = SubscriptionSchema()
custom_newsletter_schema = CustomNewsletterSchema()
post_newsletter_schema = PostNewsletterSchema()
