"""Shared test fixtures."""

import io
from datetime import date

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from homewatch.core.config import Settings
from homewatch.core.database import get_session
from homewatch.core.mailer import MailSendError, OutboundEmail, get_mailer
from homewatch.core.storage import BlobObject, BlobStoreError, get_blob_store
from homewatch.main import app
from homewatch.models import Checklist, ChecklistItem, ChecklistPhoto, Client, Property
from homewatch.reports import metadata


def make_png(color=(200, 30, 30), size=(40, 30)) -> bytes:
    """Small in-memory PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeBlobStore:
    """In-memory object store keyed by (bucket, path)."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.removed: list[tuple[str, list[str]]] = []
        self.fail_uploads = False
        self.fail_signing = False

    def put(self, locator: str, data: bytes):
        bucket, _, path = locator.partition("/")
        self.objects[(bucket, path)] = data

    def download(self, bucket: str, path: str) -> BlobObject:
        if (bucket, path) not in self.objects:
            raise BlobStoreError(f"Object not found: {bucket}/{path}")
        return BlobObject(data=self.objects[(bucket, path)])

    def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        if self.fail_signing:
            raise BlobStoreError("signing disabled")
        return f"https://storage.test/signed/{bucket}/{path}?ttl={ttl_seconds}"

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"https://storage.test/public/{bucket}/{path}"

    def upload(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None:
        if self.fail_uploads:
            raise BlobStoreError("upload rejected")
        self.objects[(bucket, path)] = data

    def remove(self, bucket: str, paths: list[str]) -> None:
        self.removed.append((bucket, list(paths)))
        for path in paths:
            self.objects.pop((bucket, path), None)


class RecordingMailer:
    """Mailer that keeps sent messages instead of talking to SMTP."""

    def __init__(self, sender: str = "reports@homewatch.test", missing: list[str] | None = None):
        self.sender = sender
        self.missing = missing or []
        self.sent: list[OutboundEmail] = []
        self.error: str | None = None

    def missing_settings(self) -> list[str]:
        return list(self.missing)

    def send(self, email: OutboundEmail) -> None:
        if self.error is not None:
            raise MailSendError(self.error)
        self.sent.append(email)


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="png_bytes")
def png_bytes_fixture() -> bytes:
    return make_png()


@pytest.fixture(name="store")
def store_fixture() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture(name="mailer")
def mailer_fixture() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture(name="report_settings")
def report_settings_fixture(tmp_path) -> Settings:
    """Settings with uncompressed PDF pages so text can be searched."""
    return Settings(
        _env_file=None,
        pdf_page_compression=False,
        logo_path=tmp_path / "missing-logo.png",
    )


@pytest.fixture(name="client")
def client_fixture(session: Session, store: FakeBlobStore, mailer: RecordingMailer):
    """Create a test client with the test database, store and mailer."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_blob_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="sample_client")
def sample_client_fixture(session: Session) -> Client:
    """A client with one property."""
    client = Client(name="Dana Whitfield", phone="239-555-0100", email="dana@example.com")
    session.add(client)
    session.flush()
    session.add(Property(client_id=client.id, name="Gulf Shore", address="12 Gulf Shore Blvd, Naples FL"))
    session.commit()
    session.refresh(client)
    return client


@pytest.fixture(name="sample_checklist")
def sample_checklist_fixture(session: Session, sample_client: Client, store: FakeBlobStore) -> Checklist:
    """A checklist with a done item, an issue item with notes and one stored photo."""
    prop = sample_client.properties[0]
    meta = metadata.ChecklistMetadata(
        client_name="Dana Whitfield",
        address="12 Gulf Shore Blvd, Naples FL",
        inspector="Sam Ortiz",
        email="dana@example.com",
        phone="239-555-0100",
        comments="Everything secure.",
        temperatures=metadata.Temperatures(garage="82", main_floor="76"),
    )
    checklist = Checklist(property_id=prop.id, visit_date=date(2025, 3, 7), notes=metadata.encode(meta))
    session.add(checklist)
    session.flush()

    done = ChecklistItem(
        checklist_id=checklist.id, category="exterior", item_text="Check roof and gutters", status="done"
    )
    issue = ChecklistItem(
        checklist_id=checklist.id,
        category="interior",
        item_text="Check under sinks for leaks",
        status="issue",
        notes="Slow drip under kitchen sink",
    )
    session.add(done)
    session.add(issue)
    session.flush()

    locator = f"checklist-photos/{checklist.id}/{issue.id}/leak.png"
    store.put(locator, make_png())
    session.add(ChecklistPhoto(checklist_item_id=issue.id, storage_path=locator))
    session.commit()
    session.refresh(checklist)
    return checklist
