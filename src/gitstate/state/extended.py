"""Secondary status queries run after the base ``git status``.

Every group runs concurrently. A failing query degrades to its empty default
so one broken lookup (no upstream, no submodules, corrupt stash) never loses
the whole refresh.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from gitstate.errors import GitCommandError

if TYPE_CHECKING:
    from collections.abc import Awaitable
    from pathlib import Path

    from gitstate.adapters.git.queries import GitQueryAdapter
    from gitstate.config import StatusConfig
    from gitstate.state.models import StatusSnapshot

log = logging.getLogger(__name__)

type Fields = dict[str, Any]


async def _safe[T](what: str, aw: Awaitable[T], default: T) -> T:
    try:
        return await aw
    except GitCommandError as exc:
        log.debug("%s unavailable: %s", what, exc)
        return default


class ExtendedStatusFetcher:
    """Fill in the extended fields of a base snapshot."""

    def __init__(
        self,
        queries: GitQueryAdapter,
        repo_root: Path,
        git_dir: Path,
        config: StatusConfig,
    ) -> None:
        self._queries = queries
        self._cwd = repo_root
        self._git_dir = git_dir
        self._config = config

    async def fetch(self, base: StatusSnapshot) -> StatusSnapshot:
        groups = await asyncio.gather(
            self._head(),
            self._upstream(base),
            self._recent(),
            self._sequencer(),
            self._merge(),
            self._stashes(),
            self._submodules(),
            self._worktrees(),
            self._push(base),
        )
        fields: Fields = {}
        for group in groups:
            fields.update(group)
        return replace(base, **fields)

    async def _head(self) -> Fields:
        subject = await _safe("HEAD subject", self._queries.commit_subject(self._cwd, "HEAD"), None)
        return {"head_commit_msg": subject or None}

    async def _upstream(self, base: StatusSnapshot) -> Fields:
        upstream = base.upstream
        if not upstream:
            return {}
        q = self._queries
        subject, unpulled, unpushed = await asyncio.gather(
            _safe("upstream subject", q.commit_subject(self._cwd, upstream), None),
            _safe("unpulled commits", q.commits_between(self._cwd, "HEAD", upstream), []),
            _safe("unpushed commits", q.commits_between(self._cwd, upstream, "HEAD"), []),
        )
        return {
            "upstream_commit_msg": subject or None,
            "unpulled_upstream": tuple(unpulled),
            "unpushed_upstream": tuple(unpushed),
        }

    async def _recent(self) -> Fields:
        count = self._config.recent_commit_count
        if count <= 0:
            return {}
        commits = await _safe("recent commits", self._queries.log(self._cwd, [f"-{count}"]), [])
        return {"recent_commits": tuple(commits)}

    async def _sequencer(self) -> Fields:
        seq = await self._queries.sequencer_state(self._git_dir)
        fields: Fields = {"sequencer": seq}
        jobs: list[Awaitable[Fields]] = []
        if seq.sequencer_head_oid:
            jobs.append(self._subject_field("sequencer_head_subject", seq.sequencer_head_oid))
        if seq.rebase_in_progress and seq.rebase_onto:
            jobs.append(self._rebase_details(seq.rebase_onto))
        for group in await asyncio.gather(*jobs):
            fields.update(group)
        return fields

    async def _rebase_details(self, onto: str) -> Fields:
        q = self._queries
        (abbrev, subject), done, name = await asyncio.gather(
            _safe("rebase onto", q.abbrev_and_subject(self._cwd, onto), ("", "")),
            _safe("rebase done commits", q.commits_since(self._cwd, onto), []),
            _safe("rebase onto name", q.name_rev(self._cwd, onto), None),
        )
        return {
            "rebase_onto_abbrev": abbrev or None,
            "rebase_onto_subject": subject or None,
            "rebase_done_commits": tuple(done),
            "rebase_onto_name": name,
        }

    async def _merge(self) -> Fields:
        merge = await self._queries.merge_state(self._git_dir)
        fields: Fields = {"merge": merge}
        if merge.merge_head_oid:
            fields.update(await self._subject_field("merge_head_subject", merge.merge_head_oid))
        return fields

    async def _stashes(self) -> Fields:
        stashes = await _safe("stash list", self._queries.stash_list(self._cwd), [])
        return {"stashes": tuple(stashes[: self._config.stash_limit])}

    async def _submodules(self) -> Fields:
        submodules = await _safe("submodule status", self._queries.submodule_status(self._cwd), [])
        return {"submodules": tuple(submodules)}

    async def _worktrees(self) -> Fields:
        worktrees = await _safe("worktree list", self._queries.worktree_list(self._cwd), [])
        return {"worktrees": tuple(worktrees)}

    async def _push(self, base: StatusSnapshot) -> Fields:
        if not base.branch or base.detached:
            return {}
        q = self._queries
        remote = await _safe("push remote", q.push_remote(self._cwd, base.branch), None)
        if not remote and base.upstream and "/" in base.upstream:
            remote = base.upstream.split("/", 1)[0]
        elif not remote and not base.upstream:
            # An unpublished branch still has somewhere it would be pushed to.
            remote = await _safe("default remote", q.default_remote(self._cwd), None)
        if not remote:
            return {}

        push_ref = f"{remote}/{base.branch}"
        if push_ref == base.upstream:
            # Already shown as the upstream.
            return {}

        fields: Fields = {"push_remote": push_ref}
        subject = await _safe("push subject", q.commit_subject(self._cwd, push_ref), None)
        if not subject:
            return fields
        unpulled, unpushed = await asyncio.gather(
            _safe("unpulled push commits", q.commits_between(self._cwd, "HEAD", push_ref), []),
            _safe("unpushed push commits", q.commits_between(self._cwd, push_ref, "HEAD"), []),
        )
        fields.update(
            push_commit_msg=subject,
            unpulled_push=tuple(unpulled),
            unpushed_push=tuple(unpushed),
        )
        return fields

    async def _subject_field(self, field: str, ref: str) -> Fields:
        subject = await _safe(field, self._queries.commit_subject(self._cwd, ref), None)
        return {field: subject or None}
