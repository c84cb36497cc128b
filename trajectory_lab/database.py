from sqlmodel import SQLModel, create_engine, Session

# Import all models so SQLModel can create tables
from . import models  # noqa: F401
from .config import settings

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, echo=settings.database_echo, connect_args=connect_args)

def init_db():
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session
