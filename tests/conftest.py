import pytest

from order_portal.config import TestingConfig
from order_portal.extensions import db
from order_portal.main import create_app
from order_portal.models.feedback import Feedback
from order_portal.models.order import Order
from order_portal.models.version import Version
from order_portal.services.order_service import OrderService
from order_portal.services.storage_service import StorageUploader


class FakeUploader(StorageUploader):
    """Records what it was given; raises queued failures in order."""

    def __init__(self):
        self.calls = []
        self.failures = []

    def upload(self, path, file_name, content_type=None, timeout=None):
        with open(path, "rb") as f:
            data = f.read()
        self.calls.append({
            "path": path,
            "file_name": file_name,
            "data": data,
            "content_type": content_type,
            "timeout": timeout,
        })
        if self.failures:
            raise self.failures.pop(0)
        return f"https://files.example.test/{len(self.calls)}/{file_name}"


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def app(tmp_path, uploader):
    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"
        TEMP_FOLDER = str(tmp_path / "temp")
        STORAGE_FOLDER = str(tmp_path / "uploads")
        UPLOAD_TIMEOUT = 5

    app = create_app(Config, uploader=uploader)
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def make_service(app, uploader):
    def factory(attempts=1):
        return OrderService(
            db.session,
            uploader,
            app.config["TEMP_FOLDER"],
            upload_timeout=app.config["UPLOAD_TIMEOUT"],
            upload_attempts=attempts,
        )
    return factory


@pytest.fixture
def service(app_ctx, make_service):
    return make_service()


@pytest.fixture
def counts():
    def snapshot():
        return {
            "orders": db.session.query(Order).count(),
            "versions": db.session.query(Version).count(),
            "feedback": db.session.query(Feedback).count(),
        }
    return snapshot
