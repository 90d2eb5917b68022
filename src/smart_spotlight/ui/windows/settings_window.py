"""Settings window: tool-provider registry and model API settings."""
from __future__ import annotations

import logging

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from smart_spotlight.common.models import AppSettings
from smart_spotlight.core.backend import BackendClient
from smart_spotlight.core.registry import KIND_SSE, KIND_STDIO, MODE_EDIT, ProviderSettings
from smart_spotlight.core.runtime import TaskRunner
from smart_spotlight.ui.common import BUTTON_STYLE, ERROR_STYLE, LIST_STYLE, PRIMARY_BUTTON_STYLE

logger = logging.getLogger(__name__)

SUCCESS_STYLE = "QLabel { color: #4CAF50; background: transparent; border: none; }"


def _status_line(label: QLabel, text: str, ok: bool):
    label.setStyleSheet(SUCCESS_STYLE if ok else ERROR_STYLE)
    label.setText(text)
    label.setVisible(bool(text))


class ProvidersPanel(QWidget):
    """Provider list, details and the create/edit form"""

    def __init__(self, state: ProviderSettings):
        super().__init__()
        self.state = state
        self._syncing = False
        self.setup_ui()
        state.on_change = self.render

    def setup_ui(self):
        layout = QHBoxLayout()
        layout.setSpacing(10)

        # List column
        left = QVBoxLayout()
        self.list_widget = QListWidget()
        self.list_widget.setStyleSheet(LIST_STYLE)
        self.list_widget.currentItemChanged.connect(self.on_current_changed)
        left.addWidget(self.list_widget, stretch=1)
        self.add_btn = QPushButton("Add Server")
        self.add_btn.setStyleSheet(PRIMARY_BUTTON_STYLE)
        self.add_btn.clicked.connect(self.state.begin_create)
        left.addWidget(self.add_btn)
        layout.addLayout(left, stretch=2)

        # Detail column
        right = QVBoxLayout()
        self.detail_label = QLabel("Select a server")
        self.detail_label.setWordWrap(True)
        self.detail_label.setTextFormat(Qt.TextFormat.PlainText)
        right.addWidget(self.detail_label)

        actions = QHBoxLayout()
        self.edit_btn = QPushButton("Edit")
        self.edit_btn.clicked.connect(self.on_edit)
        self.active_btn = QPushButton("Start")
        self.active_btn.clicked.connect(lambda: self._with_selected(self.state.toggle_active))
        self.enabled_btn = QPushButton("Disable")
        self.enabled_btn.clicked.connect(lambda: self._with_selected(self.state.toggle_enabled))
        self.delete_btn = QPushButton("Delete")
        self.delete_btn.clicked.connect(lambda: self._with_selected(self.state.delete))
        for btn in (self.edit_btn, self.active_btn, self.enabled_btn, self.delete_btn):
            btn.setStyleSheet(BUTTON_STYLE)
            actions.addWidget(btn)
        right.addLayout(actions)

        # Form
        self.form = QWidget()
        form_layout = QFormLayout()
        self.name_edit = QLineEdit()
        self.kind_combo = QComboBox()
        self.kind_combo.addItems([KIND_STDIO, KIND_SSE])
        self.kind_combo.currentTextChanged.connect(self.on_kind_changed)
        self.enabled_check = QCheckBox("Enabled")
        self.command_edit = QLineEdit()
        self.args_edit = QLineEdit()
        self.args_edit.setPlaceholderText("-y @modelcontextprotocol/server-filesystem /tmp")
        self.env_edit = QPlainTextEdit()
        self.env_edit.setPlaceholderText("KEY=VALUE, one per line")
        self.url_edit = QLineEdit()
        self.headers_edit = QPlainTextEdit()
        self.headers_edit.setPlaceholderText("Authorization: Bearer ..., one per line")
        form_layout.addRow("Name", self.name_edit)
        form_layout.addRow("Type", self.kind_combo)
        form_layout.addRow("", self.enabled_check)
        form_layout.addRow("Command", self.command_edit)
        form_layout.addRow("Arguments", self.args_edit)
        form_layout.addRow("Environment", self.env_edit)
        form_layout.addRow("URL", self.url_edit)
        form_layout.addRow("Headers", self.headers_edit)
        self.form_layout = form_layout

        form_buttons = QHBoxLayout()
        form_buttons.addStretch()
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.setStyleSheet(BUTTON_STYLE)
        self.cancel_btn.clicked.connect(self.state.cancel_form)
        self.save_btn = QPushButton("Save")
        self.save_btn.setStyleSheet(PRIMARY_BUTTON_STYLE)
        self.save_btn.clicked.connect(self.on_save)
        form_buttons.addWidget(self.cancel_btn)
        form_buttons.addWidget(self.save_btn)
        form_layout.addRow(form_buttons)
        self.form.setLayout(form_layout)
        right.addWidget(self.form, stretch=1)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        right.addWidget(self.status_label)
        right.addStretch()
        layout.addLayout(right, stretch=3)

        for field in (self.name_edit, self.command_edit, self.args_edit, self.url_edit):
            field.textEdited.connect(self.on_form_edited)
        for field in (self.env_edit, self.headers_edit):
            field.textChanged.connect(self.on_form_edited)
        self.enabled_check.toggled.connect(self.on_form_edited)

        self.setLayout(layout)

    # -- Rendering ------------------------------------------------------------

    def render(self):
        state = self.state
        self._syncing = True
        try:
            selected_name = state.selected.name if state.selected else None
            self.list_widget.clear()
            for provider in state.providers:
                marker = "●" if provider.active else "○"
                suffix = "" if provider.enabled else " (disabled)"
                item = QListWidgetItem(f"{marker} {provider.name}{suffix}")
                item.setData(Qt.ItemDataRole.UserRole, provider.name)
                self.list_widget.addItem(item)
                if provider.name == selected_name:
                    self.list_widget.setCurrentItem(item)
            if state.is_loading:
                self.detail_label.setText("Loading servers...")

            selected = state.selected
            busy = state.status.loading
            for btn in (self.edit_btn, self.active_btn, self.enabled_btn, self.delete_btn):
                btn.setEnabled(selected is not None and not busy)
            if selected is not None:
                self.detail_label.setText(self._describe(selected))
                self.active_btn.setText("Stop" if selected.active else "Start")
                self.enabled_btn.setText("Disable" if selected.enabled else "Enable")
            elif not state.is_loading:
                self.detail_label.setText("Select a server" if state.providers else "No servers configured")

            self.form.setVisible(state.form_open)
            if state.form_open:
                self._fill_form()
            self.save_btn.setEnabled(state.draft.can_save and not busy)

            if state.status.error:
                _status_line(self.status_label, state.status.error, ok=False)
            elif state.status.success:
                _status_line(self.status_label, "Saved", ok=True)
            elif busy:
                _status_line(self.status_label, "Working...", ok=True)
            else:
                _status_line(self.status_label, "", ok=True)
        finally:
            self._syncing = False

    def _describe(self, provider) -> str:
        transport = provider.transport
        lines = [provider.name, f"Type: {provider.kind}"]
        if provider.kind == KIND_STDIO:
            lines.append(f"Command: {transport.command} {' '.join(transport.args)}".rstrip())
            if transport.env:
                lines.append("Environment: " + ", ".join(sorted(transport.env)))
        else:
            lines.append(f"URL: {transport.url}")
        lines.append(f"Enabled: {'yes' if provider.enabled else 'no'}")
        lines.append(f"Status: {'running' if provider.active else 'stopped'}")
        return "\n".join(lines)

    def _fill_form(self):
        draft = self.state.draft
        editing = self.state.mode == MODE_EDIT
        self.name_edit.setText(draft.name)
        self.name_edit.setReadOnly(editing)
        self.kind_combo.setCurrentText(draft.kind)
        self.kind_combo.setEnabled(not editing)
        self.enabled_check.setChecked(draft.enabled)
        self.command_edit.setText(draft.command)
        self.args_edit.setText(draft.args_text)
        if self.env_edit.toPlainText() != draft.env_text:
            self.env_edit.setPlainText(draft.env_text)
        self.url_edit.setText(draft.url)
        if self.headers_edit.toPlainText() != draft.headers_text:
            self.headers_edit.setPlainText(draft.headers_text)
        stdio = draft.kind == KIND_STDIO
        for widget in (self.command_edit, self.args_edit, self.env_edit):
            self.form_layout.setRowVisible(widget, stdio)
        for widget in (self.url_edit, self.headers_edit):
            self.form_layout.setRowVisible(widget, not stdio)

    # -- Actions --------------------------------------------------------------

    def _with_selected(self, action):
        if self.state.selected is not None:
            action(self.state.selected.name)

    def on_current_changed(self, current, previous):
        if self._syncing:
            return
        name = current.data(Qt.ItemDataRole.UserRole) if current is not None else None
        self.state.select(name)

    def on_edit(self):
        if self.state.selected is not None:
            self.state.begin_edit(self.state.selected)

    def on_kind_changed(self, kind: str):
        if self._syncing:
            return
        self.state.draft.kind = kind
        self.render()

    def on_form_edited(self, *_):
        if self._syncing:
            return
        draft = self.state.draft
        draft.name = self.name_edit.text()
        draft.enabled = self.enabled_check.isChecked()
        draft.command = self.command_edit.text()
        draft.args_text = self.args_edit.text()
        draft.env_text = self.env_edit.toPlainText()
        draft.url = self.url_edit.text()
        draft.headers_text = self.headers_edit.toPlainText()
        self.save_btn.setEnabled(draft.can_save and not self.state.status.loading)

    def on_save(self):
        self.on_form_edited()
        self.state.save()


class ModelSettingsPanel(QWidget):
    """Base URL, API key and model for the reasoning engine"""

    def __init__(self, backend: BackendClient, runner: TaskRunner):
        super().__init__()
        self.backend = backend
        self.runner = runner
        self.setup_ui()

    def setup_ui(self):
        layout = QFormLayout()
        self.base_url_edit = QLineEdit()
        self.base_url_edit.setPlaceholderText("https://api.openai.com/v1")
        self.api_key_edit = QLineEdit()
        self.api_key_edit.setEchoMode(QLineEdit.EchoMode.Password)
        self.model_combo = QComboBox()
        self.model_combo.setEditable(True)
        layout.addRow("Base URL", self.base_url_edit)
        layout.addRow("API Key", self.api_key_edit)
        layout.addRow("Model", self.model_combo)

        buttons = QHBoxLayout()
        buttons.addStretch()
        self.test_btn = QPushButton("Test Connection")
        self.test_btn.setStyleSheet(BUTTON_STYLE)
        self.test_btn.clicked.connect(self.on_test)
        self.save_btn = QPushButton("Save")
        self.save_btn.setStyleSheet(PRIMARY_BUTTON_STYLE)
        self.save_btn.clicked.connect(self.on_save)
        buttons.addWidget(self.test_btn)
        buttons.addWidget(self.save_btn)
        layout.addRow(buttons)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        layout.addRow(self.status_label)
        self.setLayout(layout)

    def _set_busy(self, busy: bool, message: str = ""):
        self.test_btn.setEnabled(not busy)
        self.save_btn.setEnabled(not busy)
        if busy:
            _status_line(self.status_label, message, ok=True)

    def _failed(self, prefix: str):
        def show(e: Exception):
            logger.warning("%s: %s", prefix, e)
            self._set_busy(False)
            _status_line(self.status_label, f"{prefix}: {e}", ok=False)
        return show

    def load(self):
        self._set_busy(True, "Loading...")
        self.runner.submit(
            self.backend.get_settings,
            on_success=self._loaded,
            on_error=self._failed("Failed to load settings"),
        )

    def _loaded(self, settings: AppSettings):
        self._set_busy(False)
        self.base_url_edit.setText(settings.base_url)
        self.api_key_edit.setText(settings.api_key)
        self.model_combo.clear()
        self.model_combo.addItems(settings.available_models)
        self.model_combo.setCurrentText(settings.model)
        _status_line(self.status_label, "", ok=True)

    def current(self) -> AppSettings:
        models = [self.model_combo.itemText(i) for i in range(self.model_combo.count())]
        return AppSettings(
            base_url=self.base_url_edit.text().strip(),
            api_key=self.api_key_edit.text().strip(),
            model=self.model_combo.currentText().strip(),
            available_models=models,
        )

    def _finished(self, message: str):
        def show(_result):
            self._set_busy(False)
            _status_line(self.status_label, message, ok=True)
        return show

    def on_save(self):
        settings = self.current()
        self._set_busy(True, "Saving...")
        self.runner.submit(
            lambda: self.backend.update_settings(settings),
            on_success=self._finished("Settings saved"),
            on_error=self._failed("Failed to save settings"),
        )

    def on_test(self):
        settings = self.current()

        def save_and_test():
            self.backend.update_settings(settings)
            self.backend.test_connection()

        self._set_busy(True, "Testing connection...")
        self.runner.submit(
            save_and_test,
            on_success=self._finished("Connection successful"),
            on_error=self._failed("Connection failed"),
        )


class SettingsWindow(QWidget):
    """Settings with tabs for tool providers and the model API"""

    def __init__(self, providers: ProviderSettings, backend: BackendClient, runner: TaskRunner):
        super().__init__()
        self.setWindowTitle("Smart Spotlight Settings")
        self.resize(760, 520)
        self.providers_panel = ProvidersPanel(providers)
        self.model_panel = ModelSettingsPanel(backend, runner)

        layout = QVBoxLayout()
        tabs = QTabWidget()
        tabs.addTab(self.providers_panel, "Tool Providers")
        tabs.addTab(self.model_panel, "Model")
        layout.addWidget(tabs)
        self.setLayout(layout)

    def open(self):
        """Refresh from the host and bring the window forward"""
        self.providers_panel.state.load()
        self.model_panel.load()
        self.show()
        self.raise_()
        self.activateWindow()
