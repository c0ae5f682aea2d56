from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from masterbook.database import create_db_engine, create_session_factory
from masterbook.models import Base
from masterbook.repositories import FileBookingRepository, SqlBookingRepository
from masterbook.services.booking import BookingService
from masterbook.services.scheduling import ActorRole

# Fixed "now" well before the 2024-06-10 (Monday) scenarios used across tests
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)

MONDAY = "2024-06-10"
MONDAY_ONLY = {"1": [["09:00", "13:00"]]}


@pytest.fixture
def sql_repo(tmp_path) -> SqlBookingRepository:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'masterbook.db'}")
    Base.metadata.create_all(engine)
    yield SqlBookingRepository(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def file_repo(tmp_path) -> FileBookingRepository:
    return FileBookingRepository(tmp_path / "masterbook.json")


@pytest.fixture(params=["sql", "file"])
def repo(request, tmp_path):
    # Same behaviour is expected from both storage adapters
    return request.getfixturevalue(f"{request.param}_repo")


@pytest.fixture
def service(repo) -> BookingService:
    return BookingService(repo, clock=lambda: NOW)


@pytest.fixture
def people(repo) -> SimpleNamespace:
    master = repo.add_account(ActorRole.MASTER, "Anna", "anna@example.com")
    other_master = repo.add_account(ActorRole.MASTER, "Boris", "boris@example.com")
    client = repo.add_account(ActorRole.CLIENT, "Carl", "carl@example.com")
    other_client = repo.add_account(ActorRole.CLIENT, "Dina", "dina@example.com")
    category_id = repo.add_category("Nails")
    manicure = repo.add_service(master.id, "Manicure", 1200, category_id=category_id)
    return SimpleNamespace(
        master=master,
        other_master=other_master,
        client=client,
        other_client=other_client,
        service=manicure,
    )


@pytest.fixture
def monday_schedule(service, people):
    """Anna works Mondays 09:00-13:00 in 30-minute slots."""
    return service.set_availability(people.master, people.master.id, 30, MONDAY_ONLY, {})
