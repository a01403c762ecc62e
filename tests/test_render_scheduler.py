from pathlib import Path

import fitz
import pytest

from fieldmapper.model.document import PdfDocument
from fieldmapper.pdf.loader import PdfLoadError, load_pdf
from fieldmapper.pdf.renderer import PageRenderScheduler, PdfRenderError, RenderedPage, render_page


class FakeRender:
    def __init__(self):
        self.calls = []
        self.fail_pages = set()
        self.during_render = None

    def __call__(self, document, page, zoom):
        self.calls.append((page, zoom))
        if self.during_render is not None:
            hook, self.during_render = self.during_render, None
            hook()
        if page in self.fail_pages:
            raise PdfRenderError(f"Failed to render page {page}")
        return RenderedPage(page=page, zoom=zoom, image=None)


@pytest.fixture
def blank_document():
    handle = fitz.open()
    handle.new_page(width=200, height=100)
    handle.new_page(width=300, height=400)
    document = PdfDocument(path=Path("blank.pdf"), working_path=Path("blank.pdf"), handle=handle)
    yield document
    document.close_handle()


@pytest.fixture
def scheduler(qapp):
    render = FakeRender()
    sched = PageRenderScheduler(render=render)
    rendered, failed = [], []
    sched.page_rendered.connect(rendered.append)
    sched.render_failed.connect(failed.append)
    return sched, render, rendered, failed


def test_latest_request_wins(scheduler):
    sched, render, rendered, failed = scheduler

    sched.request(None, 1, 1.0)
    sched.request(None, 2, 1.0)
    sched.request(None, 3, 1.5)
    sched.flush()

    assert render.calls == [(3, 1.5)]
    assert [page.page for page in rendered] == [3]
    assert failed == []
    assert not sched.has_pending


def test_flush_without_request_does_nothing(scheduler):
    sched, render, rendered, _ = scheduler

    sched.flush()

    assert render.calls == []
    assert rendered == []


def test_failure_is_reported(scheduler):
    sched, render, rendered, failed = scheduler
    render.fail_pages.add(2)

    sched.request(None, 2, 1.0)
    sched.flush()

    assert rendered == []
    assert failed == ["Failed to render page 2"]


def test_result_superseded_mid_render_is_dropped(scheduler):
    sched, render, rendered, _ = scheduler
    render.during_render = lambda: sched.request(None, 5, 2.0)

    sched.request(None, 4, 1.0)
    sched.flush()

    assert rendered == []
    assert sched.has_pending

    sched.flush()

    assert [(page.page, page.zoom) for page in rendered] == [(5, 2.0)]


def test_stale_failure_is_not_reported(scheduler):
    sched, render, _, failed = scheduler
    render.fail_pages.add(4)
    render.during_render = lambda: sched.request(None, 5, 1.0)

    sched.request(None, 4, 1.0)
    sched.flush()

    assert failed == []


def test_cancel_discards_pending_request(scheduler):
    sched, render, rendered, _ = scheduler

    sched.request(None, 1, 1.0)
    sched.cancel()
    sched.flush()

    assert render.calls == []
    assert rendered == []


def test_request_returns_increasing_generations(scheduler):
    sched, _, _, _ = scheduler

    assert sched.request(None, 1, 1.0) < sched.request(None, 1, 1.0)


def test_render_page_scales_by_zoom(qapp, blank_document):
    rendered = render_page(blank_document, 1, 2.0)

    assert (rendered.width_px, rendered.height_px) == (400, 200)
    assert rendered.page == 1
    assert rendered.zoom == 2.0


def test_render_page_clamps_zoom(qapp, blank_document):
    rendered = render_page(blank_document, 2, 10.0)

    assert rendered.zoom == 3.0
    assert (rendered.width_px, rendered.height_px) == (900, 1200)


@pytest.mark.parametrize("page", [0, 3])
def test_render_page_out_of_range(qapp, blank_document, page):
    with pytest.raises(PdfRenderError):
        render_page(blank_document, page)


def test_page_size_is_one_based(blank_document):
    assert blank_document.page_size(1) == (200.0, 100.0)
    assert blank_document.page_size(2) == (300.0, 400.0)


def test_load_pdf_uses_working_copy(sample_pdf):
    document = load_pdf(sample_pdf)
    try:
        assert document.page_count == 2
        assert document.name == "sample.pdf"
        assert document.working_path != sample_pdf
        assert document.working_path.exists()
        assert document.page_size(1) == pytest.approx((612.0, 792.0))
    finally:
        document.close()

    assert not document.working_path.exists()
    assert sample_pdf.exists()


def test_load_pdf_missing_file(tmp_path):
    with pytest.raises(PdfLoadError):
        load_pdf(tmp_path / "missing.pdf")


def test_load_pdf_rejects_garbage(tmp_path):
    bogus = tmp_path / "bogus.pdf"
    bogus.write_bytes(b"this is not a pdf")

    with pytest.raises(PdfLoadError):
        load_pdf(bogus)
