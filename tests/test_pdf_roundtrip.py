import pytest

from fieldmapper.model.field import FieldType, create_field
from fieldmapper.pdf.importer import PdfImportError, import_pdf_fields
from fieldmapper.pdf.writer import PdfWriteError, unique_widget_names, write_pdf_with_fields


def _field(field_id, **attributes):
    base = {"name": field_id, "type": "text", "page": 1, "x": 72.0, "y": 600.0, "width": 200.0, "height": 24.0}
    base.update(attributes)
    return create_field(base, field_id)


@pytest.fixture
def fields():
    return [
        _field("a", name="Name", properties={"alignment": "center", "fontSize": 10}),
        _field("b", name="Name", y=560.0, properties={"fontFamily": "Courier"}),
        _field("c", name="Agree", type="checkbox", page=2, x=72.0, y=400.0, width=14.0, height=20.0),
        _field("d", name="Signed on", type="date", page=2, x=200.0, y=400.0, width=90.0, height=18.0),
    ]


def test_written_fields_are_read_back(sample_pdf, tmp_path, fields):
    output = tmp_path / "fillable.pdf"

    write_pdf_with_fields(sample_pdf, output, fields)
    imported = {item.name: item for item in import_pdf_fields(output)}

    assert sorted(imported) == ["Agree", "Name", "Name_2", "Signed on"]

    first = imported["Name"]
    assert first.type is FieldType.TEXT
    assert first.page == 1
    assert (first.x, first.y, first.width, first.height) == pytest.approx((72.0, 600.0, 200.0, 24.0), abs=0.01)
    assert first.properties["alignment"] == "center"
    assert imported["Name_2"].properties["alignment"] == "left"
    assert imported["Name_2"].y == pytest.approx(560.0, abs=0.01)

    checkbox = imported["Agree"]
    assert checkbox.type is FieldType.CHECKBOX
    assert checkbox.page == 2
    assert (checkbox.width, checkbox.height) == pytest.approx((14.0, 14.0), abs=0.01)

    date = imported["Signed on"]
    assert date.type is FieldType.DATE
    assert date.page == 2


def test_rewriting_replaces_existing_widgets(sample_pdf, tmp_path, fields):
    first_pass = tmp_path / "first.pdf"
    second_pass = tmp_path / "second.pdf"
    write_pdf_with_fields(sample_pdf, first_pass, fields)

    write_pdf_with_fields(first_pass, second_pass, [_field("z", name="Only")])

    assert [item.name for item in import_pdf_fields(second_pass)] == ["Only"]


def test_fields_beyond_last_page_are_skipped(sample_pdf, tmp_path, caplog):
    output = tmp_path / "fillable.pdf"

    write_pdf_with_fields(sample_pdf, output, [_field("a"), _field("b", name="Lost", page=9)])

    assert [item.name for item in import_pdf_fields(output)] == ["a"]
    assert "beyond page 2" in caplog.text


def test_plain_pdf_has_no_fields(sample_pdf):
    assert import_pdf_fields(sample_pdf) == []


def test_unique_widget_names_suffixes_repeats():
    names = unique_widget_names([_field("a", name="X"), _field("b", name="X"), _field("c", name=" ")])

    assert names == {"a": "X", "b": "X_2", "c": "text"}


def test_write_to_unwritable_location_raises(sample_pdf, tmp_path):
    with pytest.raises(PdfWriteError):
        write_pdf_with_fields(sample_pdf, tmp_path / "missing" / "out.pdf", [_field("a")])


def test_import_from_invalid_file_raises(tmp_path):
    bogus = tmp_path / "bogus.pdf"
    bogus.write_bytes(b"not a pdf")

    with pytest.raises(PdfImportError):
        import_pdf_fields(bogus)
