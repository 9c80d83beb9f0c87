import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Set test upload dir before importing app
os.environ["UPLOAD_DIR"] = "./test_data/upload"


@pytest.fixture(scope="session", autouse=True)
def setup_test_dir():
    test_dir = Path("test_data")
    test_dir.mkdir(exist_ok=True)
    yield
    # Cleanup
    import shutil
    if test_dir.exists():
        shutil.rmtree(test_dir)


@pytest.fixture
def storage(tmp_path):
    from linkdrop.files.storage import Storage

    return Storage(tmp_path / "upload")


@pytest.fixture
def client():
    from linkdrop.main import app

    with TestClient(app) as c:
        yield c
