from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Common base class – can host __repr__ or metadata config later."""
    pass
