from datetime import datetime
from unittest.mock import MagicMock

import pytest

from domain.models import CardFace, Order, RenderMode, Template
from repositories import OrdersRepository, TemplatesRepository
from services.asset_inliner import AssetInliner
from services.card_pdf import CardPdfExporter, RemotePdfStrategy, WeasyPrintPdfStrategy, build_pdf_chain
from services.errors import FallbackRenderFailed
from services.render_chain import RenderChain, RenderStrategy
from storage.file_storage import FileStorage


class RecordingPdf(RenderStrategy):
    name = "fake_pdf"

    def __init__(self, fail_on=None):
        self.jobs = []
        self.fail_on = fail_on

    def render(self, job):
        self.jobs.append(job)
        if job.face == self.fail_on:
            return b""
        return b"%PDF-1.7 " + job.face.value.encode()


@pytest.fixture
def storage(db_session, tmp_path):
    TemplatesRepository().create_template(db_session, Template(id="t1"))
    OrdersRepository().create_order(db_session, Order(id="o1", template_id="t1", custom_message="Happy new year"))
    return FileStorage(str(tmp_path / "media"))


def _exporter(storage, chain):
    return CardPdfExporter(
        storage,
        inliner=AssetInliner(storage, session=MagicMock()),
        chain=chain,
        clock=lambda: datetime(2025, 11, 20, 8, 0, 0),
    )


def test_production_export_writes_front_and_inside_files(db_session, storage):
    strategy = RecordingPdf()
    export = _exporter(storage, RenderChain([strategy])).export(db_session, "o1", RenderMode.PRODUCTION)

    assert export.paths[CardFace.FRONT] == "orders/o1/exports/front_20251120080000.pdf"
    assert export.paths[CardFace.INSIDE] == "orders/o1/exports/inside_20251120080000.pdf"
    assert storage.read_bytes(export.paths[CardFace.INSIDE]) == b"%PDF-1.7 inside"
    assert export.strategies == {CardFace.FRONT: "fake_pdf", CardFace.INSIDE: "fake_pdf"}

    for job in strategy.jobs:
        assert job.px_per_inch == 96
        assert job.plan.layout.is_spread
        assert "size: 10.25in 7in" in job.markup


def test_preview_export_uses_single_faces(db_session, storage):
    strategy = RecordingPdf()
    _exporter(storage, RenderChain([strategy])).export(db_session, "o1", "preview")
    assert all(not job.plan.layout.is_spread for job in strategy.jobs)


def test_failed_face_writes_no_files(db_session, storage):
    exporter = _exporter(storage, RenderChain([RecordingPdf(fail_on=CardFace.INSIDE)]))
    with pytest.raises(FallbackRenderFailed) as excinfo:
        exporter.export(db_session, "o1")
    assert excinfo.value.faces == ["inside"]
    assert list(storage.get_order_exports_dir("o1").iterdir()) == []


def test_remote_pdf_uses_layout_paper_size():
    client = MagicMock()
    client.configured = True
    client.convert_html_to_pdf.return_value = b"%PDF"
    job = MagicMock()
    job.markup = "<html/>"
    job.plan.layout.overall_width_in = 10.25
    job.plan.layout.overall_height_in = 7.0

    assert RemotePdfStrategy(client).render(job) == b"%PDF"
    client.convert_html_to_pdf.assert_called_once_with("<html/>", 10.25, 7.0)


def test_default_pdf_chain_order():
    client = MagicMock()
    chain = build_pdf_chain(client)
    assert [type(s) for s in chain.strategies] == [RemotePdfStrategy, WeasyPrintPdfStrategy]
