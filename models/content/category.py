"""
Category model for organizing posts.

Categories populate the editor's category picker. Posts store the chosen
category by name so that removing a category never touches published
articles.
"""

from extensions import db
from models.base import BaseModel


class Category(BaseModel):
    """A named category offered in the post editor."""
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    slug = db.Column(db.String(100), nullable=False, unique=True, index=True)

    def __repr__(self) -> str:
        return f'<Category {self.name}>'

    @classmethod
    def ordered(cls):
        return cls.query.order_by(cls.name.asc()).all()
