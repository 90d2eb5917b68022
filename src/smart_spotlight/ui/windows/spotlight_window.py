"""Spotlight prompt window"""
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QEvent, QObject, Qt, Signal
from PySide6.QtGui import QCursor, QGuiApplication
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from smart_spotlight.core.controller import PromptController, WindowHost
from smart_spotlight.core.session import SessionState
from smart_spotlight.core.viewport import MIN_HEIGHT, WINDOW_WIDTH
from smart_spotlight.ui.common import (
    BUTTON_STYLE,
    CONTAINER_STYLE,
    ERROR_STYLE,
    INPUT_STYLE,
    LIST_STYLE,
    PRIMARY_BUTTON_STYLE,
    RESULT_STYLE,
    apply_rounded_mask,
    copy_to_clipboard,
    extract_fenced_code_blocks,
)


class QtWindowHost(WindowHost):
    """Lets the controller size and hide a Qt window"""

    def __init__(self, window: "SpotlightWindow"):
        self.window = window

    def set_window_size(self, width: int, height: int) -> None:
        self.window.apply_size(width, height)

    def hide_window(self) -> None:
        self.window.hide()


class SpotlightWindow(QWidget):
    """Frameless input bar that grows into suggestions, confirmation and result views"""
    settings_requested = Signal()

    def __init__(self):
        super().__init__()
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint |
            Qt.WindowType.WindowStaysOnTopHint |
            Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setFixedSize(WINDOW_WIDTH, MIN_HEIGHT)

        self.host = QtWindowHost(self)
        self.controller: Optional[PromptController] = None
        self.drag_position = None
        self._rendered_result = None
        self._rendered_token = None

        self.setup_ui()

    def setup_ui(self):
        """Create UI elements"""
        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)

        self.container = QWidget()
        self.container.setObjectName("container")
        self.container.setStyleSheet(CONTAINER_STYLE)

        container_layout = QVBoxLayout()
        container_layout.setContentsMargins(10, 10, 10, 10)
        container_layout.setSpacing(8)

        # Input row
        input_row = QHBoxLayout()
        input_row.setSpacing(8)

        self.input_field = QLineEdit()
        self.input_field.setPlaceholderText("Ask anything...")
        self.input_field.setStyleSheet(INPUT_STYLE)
        self.input_field.textEdited.connect(self.on_text_edited)
        self.input_field.returnPressed.connect(self.on_return_pressed)
        self.input_field.installEventFilter(self)
        input_row.addWidget(self.input_field, stretch=1)

        self.loading_label = QLabel("…")
        self.loading_label.setStyleSheet("QLabel { color: #AAAAAA; background: transparent; border: none; }")
        self.loading_label.setVisible(False)
        input_row.addWidget(self.loading_label)

        self.settings_btn = QPushButton("⚙")
        self.settings_btn.setFixedWidth(34)
        self.settings_btn.setStyleSheet(BUTTON_STYLE)
        self.settings_btn.clicked.connect(self.settings_requested.emit)
        input_row.addWidget(self.settings_btn)

        container_layout.addLayout(input_row)

        # Suggestions
        self.suggestion_list = QListWidget()
        self.suggestion_list.setStyleSheet(LIST_STYLE)
        self.suggestion_list.itemClicked.connect(self.on_suggestion_clicked)
        self.suggestion_list.setVisible(False)
        container_layout.addWidget(self.suggestion_list)

        # Error
        self.error_label = QLabel("")
        self.error_label.setStyleSheet(ERROR_STYLE)
        self.error_label.setWordWrap(True)
        self.error_label.setVisible(False)
        container_layout.addWidget(self.error_label)

        # Confirmation panel
        self.confirm_panel = QWidget()
        confirm_layout = QVBoxLayout()
        confirm_layout.setContentsMargins(0, 0, 0, 0)
        self.confirm_view = QTextBrowser()
        self.confirm_view.setStyleSheet(RESULT_STYLE)
        confirm_layout.addWidget(self.confirm_view, stretch=1)

        confirm_buttons = QHBoxLayout()
        confirm_buttons.addStretch()
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.setStyleSheet(BUTTON_STYLE)
        self.cancel_btn.clicked.connect(lambda: self.on_decision(False))
        confirm_buttons.addWidget(self.cancel_btn)
        self.proceed_btn = QPushButton("Proceed")
        self.proceed_btn.setStyleSheet(PRIMARY_BUTTON_STYLE)
        self.proceed_btn.clicked.connect(lambda: self.on_decision(True))
        confirm_buttons.addWidget(self.proceed_btn)
        confirm_layout.addLayout(confirm_buttons)
        self.confirm_panel.setLayout(confirm_layout)
        self.confirm_panel.setVisible(False)
        container_layout.addWidget(self.confirm_panel, stretch=1)

        # Result panel
        self.result_panel = QWidget()
        result_layout = QVBoxLayout()
        result_layout.setContentsMargins(0, 0, 0, 0)
        self.result_view = QTextBrowser()
        self.result_view.setOpenExternalLinks(True)
        self.result_view.setStyleSheet(RESULT_STYLE)
        result_layout.addWidget(self.result_view, stretch=1)

        self.code_bar = QWidget()
        self.code_bar_layout = QHBoxLayout()
        self.code_bar_layout.setContentsMargins(0, 0, 0, 0)
        self.code_bar.setLayout(self.code_bar_layout)
        self.code_bar.setVisible(False)
        result_layout.addWidget(self.code_bar)

        result_buttons = QHBoxLayout()
        result_buttons.addStretch()
        self.copy_btn = QPushButton("Copy")
        self.copy_btn.setStyleSheet(BUTTON_STYLE)
        self.copy_btn.clicked.connect(self.on_copy_result)
        result_buttons.addWidget(self.copy_btn)
        result_layout.addLayout(result_buttons)
        self.result_panel.setLayout(result_layout)
        self.result_panel.setVisible(False)
        container_layout.addWidget(self.result_panel, stretch=1)

        self.container.setLayout(container_layout)
        layout.addWidget(self.container)
        self.setLayout(layout)

    # -- Controller wiring ----------------------------------------------------

    def bind(self, controller: PromptController):
        """Attach the controller and render its current state"""
        self.controller = controller
        controller.add_listener(self.render)
        self.render(controller)

    def render(self, controller: PromptController):
        """Sync every widget with the controller's state"""
        session = controller.session
        state = session.state

        if self.input_field.text() != controller.input_text:
            self.input_field.setText(controller.input_text)
        self.loading_label.setVisible(controller.is_loading)

        self._render_suggestions(controller)

        self.error_label.setVisible(state is SessionState.FAILED)
        self.error_label.setText(session.error_message or "")

        request = controller.pending_confirmation
        self.confirm_panel.setVisible(request is not None)
        if request is not None and request.token != self._rendered_token:
            self.confirm_view.setMarkdown(request.describe())
            self.proceed_btn.setFocus()
        self._rendered_token = request.token if request is not None else None

        show_result = state is SessionState.COMPLETED
        self.result_panel.setVisible(show_result)
        if show_result and session.result != self._rendered_result:
            self.result_view.setMarkdown(session.result or "")
            self._rebuild_code_bar(session.result or "")
        self._rendered_result = session.result if show_result else None

    def _render_suggestions(self, controller: PromptController):
        entries = controller.suggestions
        if self.suggestion_list.count() != len(entries) or any(
            self.suggestion_list.item(i).text() != entry.query for i, entry in enumerate(entries)
        ):
            self.suggestion_list.clear()
            for entry in entries:
                self.suggestion_list.addItem(QListWidgetItem(entry.query))
        self.suggestion_list.setCurrentRow(controller.selected_index)
        self.suggestion_list.setVisible(bool(entries))

    def _rebuild_code_bar(self, text: str):
        while self.code_bar_layout.count():
            item = self.code_bar_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()

        blocks = extract_fenced_code_blocks(text)
        for i, code in enumerate(blocks, start=1):
            btn = QPushButton(f"Copy code {i}")
            btn.setStyleSheet(BUTTON_STYLE)
            btn.clicked.connect(lambda _=False, c=code: copy_to_clipboard(c))
            self.code_bar_layout.addWidget(btn)
        self.code_bar_layout.addStretch(1)
        self.code_bar.setVisible(bool(blocks))

    def apply_size(self, width: int, height: int):
        self.setFixedSize(width, height)
        apply_rounded_mask(self)

    # -- User input -----------------------------------------------------------

    def on_text_edited(self, text: str):
        if self.controller:
            self.controller.edit_query(text)

    def on_return_pressed(self):
        if self.controller:
            self.controller.accept_selection()

    def on_suggestion_clicked(self, item: QListWidgetItem):
        if self.controller:
            self.controller.choose_suggestion(self.suggestion_list.row(item))

    def on_decision(self, decision: bool):
        if self.controller:
            self.controller.resolve_confirmation(decision)

    def on_copy_result(self):
        if self.controller:
            copy_to_clipboard(self.controller.session.result or "")
            self.controller.copy_result()

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        """Arrow keys move the suggestion selection; Escape hides the window"""
        if watched is self.input_field and event.type() == QEvent.Type.KeyPress and self.controller:
            key = event.key()
            if key == Qt.Key.Key_Escape:
                self.controller.escape()
                return True
            if key == Qt.Key.Key_Down and self.controller.suggestions:
                self.controller.move_selection(1)
                return True
            if key == Qt.Key.Key_Up and self.controller.suggestions:
                self.controller.move_selection(-1)
                return True
        return super().eventFilter(watched, event)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape and self.controller:
            self.controller.escape()
            return
        super().keyPressEvent(event)

    # -- Placement ------------------------------------------------------------

    def present(self):
        """Show centred in the upper third of the screen under the cursor"""
        screen = QGuiApplication.screenAt(QCursor.pos()) or QGuiApplication.primaryScreen()
        geometry = screen.availableGeometry()
        x = geometry.x() + (geometry.width() - self.width()) // 2
        y = geometry.y() + geometry.height() // 4
        self.move(x, y)
        self.show()
        self.raise_()
        self.activateWindow()
        self.input_field.setFocus()
        self.input_field.selectAll()

    def toggle(self):
        if self.isVisible():
            self.hide()
        else:
            self.present()

    def mousePressEvent(self, event):
        """Enable window dragging"""
        if event.button() == Qt.MouseButton.LeftButton:
            self.drag_position = event.globalPosition().toPoint() - self.frameGeometry().topLeft()

    def mouseMoveEvent(self, event):
        """Handle window dragging"""
        if event.buttons() == Qt.MouseButton.LeftButton and self.drag_position:
            self.move(event.globalPosition().toPoint() - self.drag_position)

    def mouseReleaseEvent(self, event):
        self.drag_position = None
