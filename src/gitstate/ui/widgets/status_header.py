"""Branch / tracking / in-progress summary above the file list."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.widgets import Static

if TYPE_CHECKING:
    from gitstate.state.models import StatusSnapshot


def _short(oid: str | None) -> str:
    return oid[:7] if oid else ""


def _operation_line(status: StatusSnapshot) -> str | None:
    seq = status.sequencer
    if status.merge.merge_in_progress:
        subject = status.merge_head_subject or ""
        return f"Merging {_short(status.merge.merge_head_oid)} {subject}".rstrip()
    if seq.rebase_in_progress:
        onto = status.rebase_onto_name or status.rebase_onto_abbrev or _short(seq.rebase_onto)
        head = seq.rebase_head_name or status.branch
        return f"Rebasing {head} onto {onto} ({len(seq.rebase_done)} done, {len(seq.rebase_todo)} left)"
    if seq.cherry_pick_in_progress:
        return f"Cherry-picking {_short(seq.sequencer_head_oid)} {status.sequencer_head_subject or ''}".rstrip()
    if seq.revert_in_progress:
        return f"Reverting {_short(seq.sequencer_head_oid)} {status.sequencer_head_subject or ''}".rstrip()
    if seq.am_in_progress:
        return f"Applying patch {seq.am_current_patch or '?'}/{seq.am_last_patch or '?'}"
    return None


def format_header(status: StatusSnapshot | None, *, refreshing: bool = False, stale: bool = False) -> str:
    """Plain-text header for a snapshot."""
    if status is None:
        return "Loading..." if refreshing else "No status"

    head = "HEAD (detached)" if status.detached else status.branch
    lines = [f"Head:     {head}  {status.head_commit_msg or ''}".rstrip()]
    if status.upstream:
        tracking = f"Merge:    {status.upstream}  {status.upstream_commit_msg or ''}".rstrip()
        if status.ahead or status.behind:
            tracking += f"  (+{status.ahead} -{status.behind})"
        lines.append(tracking)
    if status.push_remote:
        push = f"Push:     {status.push_remote}  {status.push_commit_msg or ''}".rstrip()
        if status.unpushed_push or status.unpulled_push:
            push += f"  (+{len(status.unpushed_push)} -{len(status.unpulled_push)})"
        lines.append(push)
    operation = _operation_line(status)
    if operation:
        lines.append(operation)
    if status.stashes:
        lines.append(f"Stashes:  {len(status.stashes)}")

    flags = []
    if refreshing:
        flags.append("refreshing")
    if stale:
        flags.append("stale (press g)")
    if flags:
        lines.append(f"[{', '.join(flags)}]")
    return "\n".join(lines)


class StatusHeader(Static):
    DEFAULT_CSS = """
    StatusHeader {
        height: auto;
        padding: 0 1;
        border-bottom: solid $primary;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__("", markup=False, **kwargs)
        self.text = ""

    def show(self, status: StatusSnapshot | None, *, refreshing: bool, stale: bool) -> None:
        self.text = format_header(status, refreshing=refreshing, stale=stale)
        self.update(self.text)
