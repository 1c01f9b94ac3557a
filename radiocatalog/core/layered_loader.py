"""Layered Collection Loader — merge one entity kind from several store contexts.

Invariants:
    - Contexts are read in the order given; system contexts come first by convention
    - First occurrence of a key wins, across and within contexts
    - A malformed record is logged and skipped; it never aborts the load
    - Every context's save flag is set from its layer (USER -> saved, SYSTEM -> not)
    - An empty or never-written context yields nothing, not an error

Design Decisions:
    - Returns an insertion-ordered dict of Layered[T]: callers decide how to index
      (sorted map, list by position) without re-deriving provenance
    - Store access only through the ObjectStore Protocol (functional core, IO at the edge)
"""

import logging
from dataclasses import dataclass
from typing import Hashable, Sequence, TypeVar

from radiocatalog.core.domain_types import ContextName, Layer
from radiocatalog.core.entities import Layered
from radiocatalog.core.entity_codec import EntityCodec
from radiocatalog.core.errors import MalformedRecordError
from radiocatalog.core.store_protocols import ObjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ContextSpec:
    """One layer of a collection: which context, owned by whom."""
    name: str
    layer: Layer

    @classmethod
    def system(cls, name: str | ContextName) -> "ContextSpec":
        return cls(_context_name(name), Layer.SYSTEM)

    @classmethod
    def user(cls, name: str | ContextName) -> "ContextSpec":
        return cls(_context_name(name), Layer.USER)


def _context_name(name: str | ContextName) -> str:
    return name.value if isinstance(name, ContextName) else name


def load_layered(
    store: ObjectStore,
    contexts: Sequence[ContextSpec],
    codec: EntityCodec[T],
) -> dict[Hashable, Layered[T]]:
    """Read, decode, tag and deduplicate one collection from its contexts."""
    merged: dict[Hashable, Layered[T]] = {}

    for spec in contexts:
        ctx = store.open_context(spec.name)
        ctx.set_save(spec.layer is Layer.USER)

        loaded = skipped = duplicates = 0
        for position, record in enumerate(ctx.list()):
            try:
                value = codec.decode(record, position)
            except MalformedRecordError as e:
                e.context.context_name = spec.name
                logger.warning(
                    f"Skipping {codec.entity} record {position} in '{spec.name}': {e.reason}",
                    extra=e.log_extra(),
                )
                skipped += 1
                continue

            key = codec.key(value, position)
            if key in merged:
                logger.debug(
                    f"Duplicate {codec.entity} '{key}' in '{spec.name}' ignored",
                    extra={"context": spec.name, "entity_key": str(key)},
                )
                duplicates += 1
                continue

            merged[key] = Layered(value, spec.layer)
            loaded += 1

        logger.info(
            f"Loaded {loaded} {codec.entity} entries from '{spec.name}' "
            f"({skipped} malformed, {duplicates} duplicate)",
            extra={"context": spec.name},
        )

    return merged
