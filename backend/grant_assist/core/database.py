from sqlmodel import SQLModel, create_engine, Session
from grant_assist.models.usage import UsageRecord  # Ensure models are imported for table creation
from grant_assist.models.alert import AlertRecord

import os

sqlite_file_name = os.environ.get("GA_DB_PATH", "grant_assist.db")
sqlite_url = f"sqlite:///{sqlite_file_name}"

connect_args = {"check_same_thread": False}
engine = create_engine(sqlite_url, connect_args=connect_args)

def create_db_and_tables():
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session
