from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base shared by the field engine tables."""


# Import models so Alembic and create_all see every table
from app.models import *  # noqa
