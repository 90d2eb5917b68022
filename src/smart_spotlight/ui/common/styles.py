"""Stylesheets and window shape for the spotlight surfaces."""

from PySide6.QtGui import QPainterPath, QRegion
from PySide6.QtWidgets import QWidget

FONT = "font-family: 'Segoe UI', sans-serif;"

CONTAINER_STYLE = """
    QWidget#container {
        background-color: rgba(18, 18, 18, 235);
        border-radius: 12px;
        border: 1px solid rgba(255, 255, 255, 0.1);
    }
"""

INPUT_STYLE = f"""
    QLineEdit {{
        background-color: rgba(50, 50, 50, 200);
        color: #FFFFFF;
        border: 1px solid rgba(255, 255, 255, 0.2);
        border-radius: 6px;
        padding: 8px 10px;
        {FONT}
        font-size: 11pt;
        selection-background-color: rgba(0, 120, 215, 128);
    }}
    QLineEdit:focus {{
        border: 1px solid rgba(0, 120, 215, 255);
    }}
"""

LIST_STYLE = f"""
    QListWidget {{
        background-color: rgba(30, 30, 30, 230);
        color: #FFFFFF;
        border: none;
        border-radius: 6px;
        padding: 4px;
        {FONT}
        font-size: 10pt;
    }}
    QListWidget::item {{
        padding: 4px 6px;
    }}
    QListWidget::item:selected {{
        background-color: rgba(0, 120, 215, 0.35);
        border-radius: 4px;
    }}
"""

RESULT_STYLE = f"""
    QTextBrowser {{
        background-color: transparent;
        color: #EDEDED;
        border: none;
        {FONT}
        font-size: 10.5pt;
    }}
"""

ERROR_STYLE = f"""
    QLabel {{
        color: #FF6B6B;
        background: transparent;
        border: none;
        {FONT}
        font-size: 9.5pt;
    }}
"""

BUTTON_STYLE = f"""
    QPushButton {{
        background-color: rgba(70, 70, 70, 200);
        color: #FFFFFF;
        border: 1px solid rgba(255, 255, 255, 0.2);
        border-radius: 6px;
        padding: 6px 16px;
        {FONT}
        font-size: 10pt;
    }}
    QPushButton:hover {{
        background-color: rgba(90, 90, 90, 220);
    }}
    QPushButton:disabled {{
        color: rgba(255, 255, 255, 0.4);
    }}
"""

PRIMARY_BUTTON_STYLE = f"""
    QPushButton {{
        background-color: rgba(0, 120, 215, 200);
        color: #FFFFFF;
        border: none;
        border-radius: 6px;
        padding: 6px 20px;
        {FONT}
        font-size: 10pt;
        font-weight: bold;
    }}
    QPushButton:hover {{
        background-color: rgba(0, 140, 235, 220);
    }}
    QPushButton:disabled {{
        background-color: rgba(0, 120, 215, 90);
    }}
"""


def apply_rounded_mask(widget: QWidget, radius: int = 12) -> None:
    """Clip the window to rounded corners; call again after every resize."""
    path = QPainterPath()
    path.addRoundedRect(widget.rect(), radius, radius)
    widget.setMask(QRegion(path.toFillPolygon().toPolygon()))
