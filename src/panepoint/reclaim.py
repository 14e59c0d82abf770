"""Garbage collection for position stores."""

from __future__ import annotations

from typing import Any, Callable, Collection, Hashable

from .store import PositionStore

__all__ = ["collect_garbage"]


def collect_garbage(
    store: PositionStore,
    live_documents: Callable[[Any], bool] | Collection[Hashable],
    *,
    live_viewports: Collection[Hashable] | None = None,
) -> PositionStore:
    """Return ``store`` without entries for dead documents.

    ``live_documents`` is either a liveness predicate or the collection of
    documents still alive. Viewport entries left without documents are
    dropped; when ``live_viewports`` is given, entries of viewports outside it
    are dropped as well.
    """

    if callable(live_documents):
        is_live = live_documents
    else:
        alive = live_documents if isinstance(live_documents, (set, frozenset)) else frozenset(live_documents)
        is_live = alive.__contains__
    return store.prune(is_live, live_viewports=live_viewports)
