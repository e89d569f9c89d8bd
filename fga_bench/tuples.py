"""
Relationship tuples and the factories that mint them.

Every fixture the benchmarks write, check or delete is a
:class:`RelationshipTuple`.  Identifiers are random UUID4 strings, so
two factory calls never collide in practice.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

USER_TYPE = "user"
GROUP_TYPE = "group"
REPORT_TYPE = "report"

MEMBER = "member"
SUBGROUP = "subgroup"
READER = "reader"


@dataclass(frozen=True)
class RelationshipTuple:
    """An immutable ``(user, relation, object)`` relationship fact."""

    user: str
    relation: str
    object: str

    def to_key(self) -> dict[str, str]:
        """Return the tuple key shape the OpenFGA API expects."""
        return {"user": self.user, "relation": self.relation, "object": self.object}

    @classmethod
    def from_key(cls, key: dict[str, Any]) -> RelationshipTuple:
        """Rebuild a tuple from an API tuple key."""
        return cls(user=key["user"], relation=key["relation"], object=key["object"])


def new_id() -> str:
    """Return a fresh, globally unique identifier."""
    return str(uuid.uuid4())


def ref(type_name: str, object_id: str) -> str:
    """Format a namespaced ``<type>:<id>`` reference."""
    return f"{type_name}:{object_id}"


def split_ref(value: str) -> tuple[str, str]:
    """Split ``"group:abc"`` into ``("group", "abc")``."""
    type_name, _, object_id = value.partition(":")
    return type_name, object_id


def new_user_reader_tuple() -> RelationshipTuple:
    """Mint ``user:<new> reader report:<new>``."""
    return RelationshipTuple(ref(USER_TYPE, new_id()), READER, ref(REPORT_TYPE, new_id()))


def new_subgroup_tuple(from_group_id: str, to_group_id: str) -> RelationshipTuple:
    """Link ``group:<from_group_id>`` as a subgroup of ``group:<to_group_id>``."""
    return RelationshipTuple(ref(GROUP_TYPE, from_group_id), SUBGROUP, ref(GROUP_TYPE, to_group_id))


def new_group_reader_tuple(group_id: str, report_id: str) -> RelationshipTuple:
    """Grant ``group:<group_id>`` reader on ``report:<report_id>``."""
    return RelationshipTuple(ref(GROUP_TYPE, group_id), READER, ref(REPORT_TYPE, report_id))
