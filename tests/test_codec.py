import json

import pytest

from fieldmapper.exchange.codec import (
    MalformedImportError,
    decode_fields,
    export_fields,
    import_fields,
    load_json,
    save_json,
)
from fieldmapper.state.registry import FieldRegistry


def _registry_with_fields():
    registry = FieldRegistry()
    registry.add(
        {
            "name": "Applicant",
            "type": "text",
            "page": 1,
            "x": 100.0,
            "y": 200.0,
            "width": 150.0,
            "height": 30.0,
            "properties": {"alignment": "center"},
        }
    )
    registry.add(
        {"name": "Agree", "type": "checkbox", "page": 2, "x": 40.0, "y": 60.0, "width": 14.0, "height": 14.0}
    )
    registry.add(
        {"name": "Signed on", "type": "date", "page": 2, "x": 300.5, "y": 61.25, "width": 80.0, "height": 18.0}
    )
    return registry


def test_export_contains_both_unit_systems():
    registry = _registry_with_fields()

    payload = export_fields(registry, "form.pdf")

    assert payload["pdfName"] == "form.pdf"
    first = payload["fields"][0]
    assert first["name"] == "Applicant"
    assert first["type"] == "text"
    assert first["page"] == 1
    assert (first["x"], first["y"], first["width"], first["height"]) == (61.74, 75.85, 52.92, 10.58)
    assert (first["pdfX"], first["pdfY"], first["pdfWidth"], first["pdfHeight"]) == (100.0, 200.0, 150.0, 30.0)
    assert first["properties"]["alignment"] == "center"


def test_export_is_json_serialisable():
    payload = export_fields(_registry_with_fields(), None)

    assert json.loads(json.dumps(payload)) == payload


def test_round_trip_preserves_fields():
    source = _registry_with_fields()
    payload = json.loads(json.dumps(export_fields(source, "form.pdf")))

    target = FieldRegistry()
    assert import_fields(target, payload) == 3

    for before, after in zip(source.list(), target.list()):
        assert after.id == before.id
        assert after.name == before.name
        assert after.type is before.type
        assert after.page == before.page
        assert after.rect == before.rect
        assert after.properties == before.properties


def test_millimetre_only_round_trip_is_close():
    source = _registry_with_fields()
    payload = export_fields(source, "form.pdf")
    for entry in payload["fields"]:
        for key in ("pdfX", "pdfY", "pdfWidth", "pdfHeight"):
            del entry[key]

    restored = decode_fields(payload)

    for before, after in zip(source.list(), restored):
        assert after.x == pytest.approx(before.x, abs=0.03)
        assert after.y == pytest.approx(before.y, abs=0.03)
        assert after.width == pytest.approx(before.width, abs=0.03)
        assert after.height == pytest.approx(before.height, abs=0.03)

    reloaded = FieldRegistry()
    reloaded.replace_all(restored)
    reexported = export_fields(reloaded, "form.pdf")

    for first, second in zip(payload["fields"], reexported["fields"]):
        for key in ("x", "y", "width", "height"):
            assert second[key] == pytest.approx(first[key], abs=0.01)


def test_point_values_take_precedence_over_millimetres():
    payload = {
        "fields": [
            {
                "name": "A",
                "type": "text",
                "page": 1,
                "x": 999.0,
                "y": 999.0,
                "width": 999.0,
                "height": 999.0,
                "pdfX": 10.0,
                "pdfY": 20.0,
                "pdfWidth": 30.0,
                "pdfHeight": 40.0,
            }
        ]
    }

    (item,) = decode_fields(payload)

    assert (item.x, item.y, item.width, item.height) == (10.0, 20.0, 30.0, 40.0)


def test_missing_and_duplicate_ids_are_regenerated():
    entry = {"type": "checkbox", "page": 1, "pdfX": 1, "pdfY": 1, "pdfWidth": 5, "pdfHeight": 5}
    payload = {"fields": [dict(entry, id="same"), dict(entry, id="same"), dict(entry)]}

    fields = decode_fields(payload)

    ids = [item.id for item in fields]
    assert ids[0] == "same"
    assert len(set(ids)) == 3
    assert [item.name for item in fields] == ["Field_1", "Field_2", "Field_3"]


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"pdfName": "x.pdf"},
        {"fields": "nope"},
        {"fields": [42]},
        {"fields": [{"type": "text", "page": 1, "pdfX": 1, "pdfY": 1, "pdfWidth": 5}]},
        {"fields": [{"type": "text", "page": 1, "pdfX": 1, "pdfY": 1, "pdfWidth": 5, "pdfHeight": "5"}]},
        {"fields": [{"type": "text", "page": 1, "pdfX": 1, "pdfY": 1, "pdfWidth": 0, "pdfHeight": 5}]},
        {"fields": [{"type": "signature", "page": 1, "pdfX": 1, "pdfY": 1, "pdfWidth": 5, "pdfHeight": 5}]},
        {"fields": [{"type": "text", "page": 0, "pdfX": 1, "pdfY": 1, "pdfWidth": 5, "pdfHeight": 5}]},
    ],
)
def test_malformed_payload_leaves_registry_untouched(payload):
    registry = _registry_with_fields()
    before = registry.list()

    with pytest.raises(MalformedImportError):
        import_fields(registry, payload)

    assert registry.list() == before


def test_one_bad_entry_rejects_the_whole_import():
    registry = _registry_with_fields()
    good = {"type": "text", "page": 1, "pdfX": 1, "pdfY": 1, "pdfWidth": 5, "pdfHeight": 5}
    bad = dict(good, pdfHeight=-1)

    with pytest.raises(MalformedImportError):
        import_fields(registry, {"fields": [good, bad]})

    assert len(registry) == 3


def test_import_clears_selection():
    registry = _registry_with_fields()
    assert registry.selected() is not None

    import_fields(registry, {"fields": []})

    assert registry.selected() is None
    assert len(registry) == 0


def test_save_and_load_json(tmp_path):
    target = tmp_path / "fields.json"
    payload = export_fields(_registry_with_fields(), "form.pdf")

    save_json(target, payload)

    assert target.read_text(encoding="utf-8").endswith("\n")
    assert load_json(target) == payload


def test_load_json_rejects_invalid_files(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(MalformedImportError):
        load_json(broken)
    with pytest.raises(MalformedImportError):
        load_json(tmp_path / "missing.json")
