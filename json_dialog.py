"""Export/import JSON dialog for house timers."""

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPlainTextEdit, QPushButton, QApplication
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QFont, QKeyEvent

from config import FONT_FAMILY_MONO


class JsonDialog(QDialog):
    """Dialog showing exported timer JSON, or accepting JSON to import."""

    # Emitted with the pasted text when the user confirms an import
    json_submitted = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._importing = False
        self._setup_window()
        self._setup_ui()

    def _setup_window(self):
        """Configure dialog properties."""
        self.setWindowFlags(
            Qt.WindowType.WindowStaysOnTopHint |
            Qt.WindowType.Dialog
        )
        self.setStyleSheet("""
            QPlainTextEdit {
                border: 1px solid #CCCCCC;
                border-radius: 4px;
                padding: 6px;
            }
        """)
        self.setMinimumSize(420, 360)

    def _setup_ui(self):
        """Setup UI elements."""
        layout = QVBoxLayout()
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(12)

        self.label = QLabel("")
        layout.addWidget(self.label)

        self.text_edit = QPlainTextEdit()
        self.text_edit.setFont(QFont(FONT_FAMILY_MONO, 12))
        layout.addWidget(self.text_edit, stretch=1)

        # Error label (hidden by default)
        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #D32F2F; font-size: 12px;")
        self.error_label.setWordWrap(True)
        self.error_label.setVisible(False)
        layout.addWidget(self.error_label)

        buttons = QHBoxLayout()
        self.import_button = QPushButton("Import")
        self.import_button.clicked.connect(self._submit)
        self.close_button = QPushButton("Close")
        self.close_button.clicked.connect(self.reject)
        buttons.addWidget(self.import_button)
        buttons.addWidget(self.close_button)
        layout.addLayout(buttons)

        self.setLayout(layout)

    def show_export(self, json_text: str):
        """Show exported JSON read-only and copy it to the clipboard."""
        self._importing = False
        self.setWindowTitle("Export timers")
        self.label.setText("Copy this JSON to share your timers:")
        self.text_edit.setPlainText(json_text)
        self.text_edit.setReadOnly(True)
        self.import_button.setVisible(False)
        self.close_button.setText("Close")
        self.error_label.setVisible(False)

        clipboard = QApplication.clipboard()
        if clipboard is not None:
            clipboard.setText(json_text)

        self.show()
        self.raise_()
        self.text_edit.selectAll()

    def show_import(self):
        """Show an empty editor for pasting timer JSON."""
        self._importing = True
        self.setWindowTitle("Import timers")
        self.label.setText("Paste the timers JSON here:")
        self.text_edit.clear()
        self.text_edit.setReadOnly(False)
        self.import_button.setVisible(True)
        self.close_button.setText("Cancel")
        self.error_label.setVisible(False)

        self.show()
        self.raise_()
        self.text_edit.setFocus()

    def show_error(self, message: str):
        """Keep the dialog open and report why the import failed."""
        self.error_label.setText(message)
        self.error_label.setVisible(True)

    def keyPressEvent(self, event: QKeyEvent):
        """Escape closes; everything else goes to the editor."""
        if event.key() == Qt.Key.Key_Escape:
            self.reject()
        else:
            super().keyPressEvent(event)

    def _submit(self):
        """Emit the pasted JSON for import."""
        if not self._importing:
            return
        text = self.text_edit.toPlainText().strip()
        if not text:
            self.show_error("Please enter valid JSON.")
            return
        self.error_label.setVisible(False)
        self.json_submitted.emit(text)
