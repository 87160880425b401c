import os
import tempfile

# Point the app at a throwaway database before anything imports db.py
_DB_DIR = tempfile.mkdtemp(prefix="placement-grading-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ["LLM_API_KEY"] = ""

import pytest  # noqa: E402

import models  # noqa: E402,F401
from db import Base, engine  # noqa: E402
from main import app  # noqa: E402

Base.metadata.create_all(bind=engine)


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()
