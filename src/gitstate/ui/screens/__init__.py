from gitstate.ui.screens.status import StatusScreen

__all__ = ["StatusScreen"]
