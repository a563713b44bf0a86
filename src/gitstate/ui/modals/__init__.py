from gitstate.ui.modals.debug_log import DebugLogModal

__all__ = ["DebugLogModal"]
