from gitstate.ui.widgets.file_row import FileRow
from gitstate.ui.widgets.status_header import StatusHeader, format_header

__all__ = ["FileRow", "StatusHeader", "format_header"]
