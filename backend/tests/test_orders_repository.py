from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from domain.models import Order, Template
from repositories import OrdersRepository, TemplatesRepository
from services.errors import PersistFailed


@pytest.fixture
def repo(db_session):
    TemplatesRepository().create_template(db_session, Template(id="t1", name="Snow"))
    repo = OrdersRepository()
    repo.create_order(
        db_session,
        Order(id="o1", template_id="t1", signature_url="sig/a.png", cropped_signature_url="sig/a_crop.png"),
    )
    return repo


def test_order_round_trip(db_session, repo):
    order = repo.get_order(db_session, "o1")
    assert order.template_id == "t1"
    assert order.signature_ref == "sig/a_crop.png"
    assert repo.get_order(db_session, "missing") is None


def test_save_previews_writes_all_three_fields(db_session, repo):
    when = datetime(2025, 12, 24, 18, 0, 0)
    saved = repo.save_previews(db_session, "o1", "data:image/png;base64,AA==", "data:image/png;base64,BB==", when)
    assert saved.front_preview == "data:image/png;base64,AA=="
    assert saved.inside_preview == "data:image/png;base64,BB=="
    assert saved.previews_updated_at == when


def test_save_previews_refuses_a_single_face(db_session, repo):
    with pytest.raises(PersistFailed):
        repo.save_previews(db_session, "o1", "data:image/png;base64,AA==", "", datetime.utcnow())
    assert repo.get_order(db_session, "o1").front_preview is None


def test_save_previews_for_missing_order(db_session, repo):
    with pytest.raises(PersistFailed):
        repo.save_previews(db_session, "gone", "a", "b", datetime.utcnow())


def test_database_errors_roll_back(db_session, repo):
    with patch.object(db_session, "commit", side_effect=OperationalError("UPDATE", {}, Exception("locked"))):
        with pytest.raises(PersistFailed):
            repo.save_previews(db_session, "o1", "a", "b", datetime.utcnow())
    assert repo.get_order(db_session, "o1").front_preview is None
