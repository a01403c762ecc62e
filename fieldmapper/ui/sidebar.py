"""Field list, search filter, and property editor shown beside the page."""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from fieldmapper.model.field import Alignment, FieldType, FontFamily, FormField
from fieldmapper.state.registry import FieldRegistry, MutationStatus
from fieldmapper.state.viewport import Viewport

FIELD_ID_ROLE = Qt.ItemDataRole.UserRole


class FieldSidebar(QWidget):
    status_message = Signal(str)

    def __init__(self, registry: FieldRegistry, viewport: Viewport) -> None:
        super().__init__()
        self._registry = registry
        self._viewport = viewport
        self._syncing = False

        layout = QVBoxLayout(self)
        layout.addWidget(self._build_type_picker())

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search fields...")
        self.search_edit.textChanged.connect(lambda _text: self.refresh())
        layout.addWidget(self.search_edit)

        self.all_pages_check = QCheckBox("Show fields from all pages")
        self.all_pages_check.toggled.connect(lambda _checked: self.refresh())
        layout.addWidget(self.all_pages_check)

        self.field_list = QListWidget()
        self.field_list.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self.field_list, stretch=1)

        self.empty_label = QLabel()
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.empty_label)

        self.delete_button = QPushButton("Delete Field")
        self.delete_button.clicked.connect(self._delete_selected)
        layout.addWidget(self.delete_button)

        self.editor = self._build_editor()
        layout.addWidget(self.editor)

        registry.subscribe(self.refresh)
        self.refresh()

    def _build_type_picker(self) -> QGroupBox:
        box = QGroupBox("Field Type")
        row = QHBoxLayout(box)
        self._type_buttons = QButtonGroup(self)
        self._type_buttons.setExclusive(True)
        for field_type in FieldType:
            button = QPushButton(field_type.value.capitalize())
            button.setCheckable(True)
            button.setChecked(field_type is self._registry.current_draw_type)
            button.clicked.connect(
                lambda _checked=False, value=field_type: self._registry.set_current_draw_type(value)
            )
            self._type_buttons.addButton(button)
            row.addWidget(button)
        return box

    def _build_editor(self) -> QGroupBox:
        box = QGroupBox("Field Properties")
        form = QFormLayout(box)

        self.name_edit = QLineEdit()
        self.name_edit.textEdited.connect(lambda text: self._apply({"name": text}))
        form.addRow("Field Name", self.name_edit)

        self.type_combo = QComboBox()
        for field_type in FieldType:
            self.type_combo.addItem(field_type.value.capitalize(), field_type.value)
        self.type_combo.currentIndexChanged.connect(
            lambda _index: self._apply({"type": self.type_combo.currentData()})
        )
        form.addRow("Field Type", self.type_combo)

        self.page_spin = _spin_box(1.0, 100000.0, decimals=0)
        self.page_spin.valueChanged.connect(lambda value: self._apply({"page": int(value)}))
        form.addRow("Page", self.page_spin)

        self.geometry_spins: dict[str, QDoubleSpinBox] = {}
        for key, label, minimum in (
            ("x", "X Position", -100000.0),
            ("y", "Y Position", -100000.0),
            ("width", "Width", 0.01),
            ("height", "Height", 0.01),
        ):
            spin = _spin_box(minimum, 100000.0)
            spin.valueChanged.connect(lambda value, name=key: self._apply({name: value}))
            self.geometry_spins[key] = spin
            form.addRow(label, spin)

        self.font_family_combo = QComboBox()
        for family in FontFamily:
            self.font_family_combo.addItem(family.value.replace("-", " "), family.value)
        self.font_family_combo.currentIndexChanged.connect(
            lambda _index: self._apply_property("fontFamily", self.font_family_combo.currentData())
        )
        self.font_size_spin = _spin_box(1.0, 200.0, decimals=1)
        self.font_size_spin.valueChanged.connect(
            lambda value: self._apply_property("fontSize", value)
        )
        self.alignment_combo = QComboBox()
        for alignment in Alignment:
            self.alignment_combo.addItem(alignment.value.capitalize(), alignment.value)
        self.alignment_combo.currentIndexChanged.connect(
            lambda _index: self._apply_property("alignment", self.alignment_combo.currentData())
        )
        self._text_rows = (
            ("Font Family", self.font_family_combo),
            ("Font Size", self.font_size_spin),
            ("Text Alignment", self.alignment_combo),
        )
        for label, widget in self._text_rows:
            form.addRow(label, widget)
        self._form = form
        return box

    def refresh(self) -> None:
        self._syncing = True
        try:
            self._sync_type_buttons()
            self._populate_list()
            self._sync_editor(self._registry.selected())
        finally:
            self._syncing = False

    def _sync_type_buttons(self) -> None:
        current = self._registry.current_draw_type
        for button, field_type in zip(self._type_buttons.buttons(), FieldType):
            button.setChecked(field_type is current)

    def _populate_list(self) -> None:
        all_pages = self.all_pages_check.isChecked()
        fields = self._registry.filtered(self.search_edit.text(), self._viewport.page, all_pages)
        if all_pages:
            fields.sort(key=lambda item: item.page)

        selected = self._registry.selected()
        self.field_list.clear()
        current_page: int | None = None
        for item in fields:
            if all_pages and item.page != current_page:
                current_page = item.page
                header = QListWidgetItem(f"Page {item.page}")
                header.setFlags(Qt.ItemFlag.NoItemFlags)
                self.field_list.addItem(header)

            row = QListWidgetItem(_describe(item))
            row.setData(FIELD_ID_ROLE, item.id)
            self.field_list.addItem(row)
            if selected is not None and item.id == selected.id:
                row.setSelected(True)

        if fields:
            self.empty_label.setText("")
        elif self._viewport.total_pages:
            self.empty_label.setText("No fields defined yet")
        else:
            self.empty_label.setText("Load a PDF to start mapping fields")
        self.delete_button.setEnabled(selected is not None)

    def _sync_editor(self, selected: FormField | None) -> None:
        self.editor.setVisible(selected is not None)
        if selected is None:
            return

        if self.name_edit.text() != selected.name:
            self.name_edit.setText(selected.name)
        self.type_combo.setCurrentIndex(self.type_combo.findData(selected.type.value))
        self.page_spin.setValue(selected.page)
        for key, spin in self.geometry_spins.items():
            spin.setValue(getattr(selected, key))

        is_text = selected.type is FieldType.TEXT
        for _label, widget in self._text_rows:
            self._form.setRowVisible(widget, is_text)
        if is_text:
            properties = selected.properties
            self.font_family_combo.setCurrentIndex(
                self.font_family_combo.findData(properties.get("fontFamily"))
            )
            self.font_size_spin.setValue(float(properties.get("fontSize", 12)))
            self.alignment_combo.setCurrentIndex(
                self.alignment_combo.findData(properties.get("alignment"))
            )

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        field_id = item.data(FIELD_ID_ROLE)
        if field_id:
            self._registry.select(field_id)

    def _delete_selected(self) -> None:
        selected = self._registry.selected()
        if selected is not None:
            self._registry.delete(selected.id)
            self.status_message.emit(f"Deleted {selected.name}")

    def _apply(self, changes: dict[str, Any]) -> None:
        if self._syncing:
            return
        selected = self._registry.selected()
        if selected is None:
            return

        status = self._registry.update(selected.id, changes)
        if status is MutationStatus.INVALID_GEOMETRY:
            self.status_message.emit("Rejected edit: width and height must stay positive.")
        elif status is not MutationStatus.OK:
            self.status_message.emit(f"Rejected edit: {status.value.replace('_', ' ')}")

    def _apply_property(self, key: str, value: Any) -> None:
        selected = self._registry.selected()
        if selected is None:
            return
        self._apply({"properties": {**selected.properties, key: value}})


def _describe(item: FormField) -> str:
    return (
        f"{item.name}\n"
        f"Type: {item.type.value} | Position: ({round(item.x)}, {round(item.y)})\n"
        f"Size: {round(item.width)} x {round(item.height)}"
    )


def _spin_box(minimum: float, maximum: float, decimals: int = 2) -> QDoubleSpinBox:
    spin = QDoubleSpinBox()
    spin.setRange(minimum, maximum)
    spin.setDecimals(decimals)
    spin.setKeyboardTracking(False)
    return spin
