"""Commit construction against the git object model.

A :class:`CommitTransaction` edits an in-memory copy of the branch head's
tree.  Nothing touches the object store until the transaction is flushed,
at which point blobs, trees and a single commit are written and the branch
ref is advanced.  No index or working tree is involved, so this works the
same for bare and non-bare repositories.
"""

from __future__ import annotations

import logging
import stat
from datetime import datetime
from typing import Union

from dulwich.objects import S_IFGITLINK, Blob, Commit, Tree
from dulwich.repo import Repo

from ..exceptions import GitError
from ..models.git import EntryType, Identity

logger = logging.getLogger(__name__)

_BLOB_MODE = 0o100644

# An entry is pending content (bytes), an edited subtree (dict), or an
# untouched object still in the store (mode, sha).
_Node = Union[bytes, dict[str, "_Node"], tuple[int, bytes]]


def _encode_name(name: str) -> bytes:
    return name.encode("utf-8", errors="surrogateescape")


def _decode_name(raw: bytes) -> str:
    return raw.decode("utf-8", errors="surrogateescape")


def _node_type(node: _Node) -> str:
    if isinstance(node, dict):
        return "tree"
    if isinstance(node, bytes):
        return "blob"
    mode = node[0]
    if stat.S_ISDIR(mode):
        return "tree"
    if mode == S_IFGITLINK:
        return "commit"
    return "blob"


def _tz_offset(when: datetime) -> int:
    offset = when.utcoffset()
    return int(offset.total_seconds()) if offset is not None else 0


class CommitTransaction:
    """Everything you can do while building one commit.

    Names are relative to the repository root; ``/`` addresses nested
    trees.  Obtain instances through :meth:`GitRepository.commit`.
    """

    def __init__(
        self,
        repo: Repo,
        message: str,
        author: Identity,
        committer: Identity,
    ) -> None:
        self._repo = repo
        self.message = message
        self.author = author
        self.committer = committer
        self.commit_id: str | None = None
        self._closed = False

        try:
            self._parent: bytes | None = repo.head()
        except KeyError:
            self._parent = None

        if self._parent is None:
            self._root: dict[str, _Node] = {}
        else:
            self._root = self._load_tree(repo[self._parent].tree)

    # ------------------------------------------------------------------
    # Tree view helpers
    # ------------------------------------------------------------------

    def _load_tree(self, tree_id: bytes) -> dict[str, _Node]:
        tree = self._repo.object_store[tree_id]
        return {_decode_name(item.path): (item.mode, item.sha) for item in tree.items()}

    @staticmethod
    def _split(name: str) -> list[str]:
        parts = [part for part in name.split("/") if part]
        if not parts:
            raise GitError(f"invalid entry name: {name!r}")
        return parts

    def _subtree(self, parts: list[str], *, create: bool) -> dict[str, _Node] | None:
        """Return the tree addressed by *parts*, expanding stored trees."""
        tree = self._root
        for part in parts:
            node = tree.get(part)
            if node is None:
                if not create:
                    return None
                node = tree[part] = {}
            elif not isinstance(node, dict):
                if _node_type(node) != "tree":
                    if create:
                        raise GitError(f"{part} is a {_node_type(node)}, not a tree")
                    return None
                node = tree[part] = self._load_tree(node[1])
            tree = node
        return tree

    def _check_open(self) -> None:
        if self._closed:
            raise GitError("transaction is already complete")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def empty_index(self) -> None:
        """Remove every top-level entry so the tree can be rebuilt from scratch."""
        for name in self.entries():
            self.remove(name)

    def add(self, name: str, content: bytes | str | None) -> None:
        """Create or overwrite the blob at *name*.

        An empty file is represented by empty content, so ``None`` is an error.
        """
        self._check_open()
        if content is None:
            raise GitError(f"no data in {name}: {content!r}")
        if isinstance(content, str):
            content = content.encode("utf-8")

        *parents, leaf = self._split(name)
        tree = self._subtree(parents, create=True)
        if tree is None:
            raise GitError(f"cannot add {name}")
        tree[leaf] = bytes(content)

    def remove(self, name: str) -> None:
        """Delete the entry at *name*."""
        self._check_open()
        *parents, leaf = self._split(name)
        tree = self._subtree(parents, create=False)
        if tree is None or leaf not in tree:
            raise GitError(f"{name} does not exist")
        del tree[leaf]

    def entries(self) -> list[str]:
        """Return the names of all top-level entries."""
        return sorted(self._root)

    def entry(self, name: str, expected_type: EntryType | None = None) -> list[str] | bytes | None:
        """Look up *name*.

        Returns the child names for a tree, the raw bytes for a blob, and
        ``None`` for anything else (including a missing entry).  Raises
        :class:`GitError` when *expected_type* is given and the entry exists
        with a different type.
        """
        *parents, leaf = self._split(name)
        tree = self._subtree(parents, create=False)
        node = tree.get(leaf) if tree is not None else None
        if node is None:
            return None

        actual = _node_type(node)
        if expected_type is not None and actual != expected_type:
            raise GitError(f"type was {actual} not {expected_type}")

        if actual == "tree":
            if not isinstance(node, dict):
                node = self._load_tree(node[1])
            return sorted(node)
        if actual == "blob":
            if isinstance(node, bytes):
                return node
            return self._repo.object_store[node[1]].data
        return None

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def _write_tree(self, entries: dict[str, _Node]) -> bytes:
        store = self._repo.object_store
        tree = Tree()
        for name, node in entries.items():
            if isinstance(node, dict):
                if not node:
                    continue
                tree.add(_encode_name(name), stat.S_IFDIR, self._write_tree(node))
            elif isinstance(node, bytes):
                blob = Blob.from_string(node)
                store.add_object(blob)
                tree.add(_encode_name(name), _BLOB_MODE, blob.id)
            else:
                mode, sha = node
                tree.add(_encode_name(name), mode, sha)
        store.add_object(tree)
        return tree.id

    def commit_sync(self) -> str:
        """Write the tree view and a commit, then advance the branch head.

        Returns the new commit sha.
        """
        self._check_open()
        tree_id = self._write_tree(self._root)

        author_date = self.author.resolved_date()
        committer_date = self.committer.resolved_date()

        commit = Commit()
        commit.tree = tree_id
        commit.parents = [self._parent] if self._parent is not None else []
        commit.author = self.author.ident()
        commit.committer = self.committer.ident()
        commit.author_time = int(author_date.timestamp())
        commit.author_timezone = _tz_offset(author_date)
        commit.commit_time = int(committer_date.timestamp())
        commit.commit_timezone = _tz_offset(committer_date)
        commit.encoding = b"UTF-8"
        commit.message = self.message.encode("utf-8")
        self._repo.object_store.add_object(commit)

        summary = commit.message.splitlines()[0] if commit.message else b""
        updated = self._repo.refs.set_if_equals(
            b"HEAD",
            self._parent,
            commit.id,
            committer=commit.committer,
            timestamp=commit.commit_time,
            timezone=commit.commit_timezone,
            message=b"commit: " + summary,
        )
        if not updated:
            raise GitError("HEAD moved while the commit was being built")

        self._closed = True
        self.commit_id = commit.id.decode("ascii")
        logger.info("Committed %s: %s", self.commit_id[:8], self.message)
        return self.commit_id
