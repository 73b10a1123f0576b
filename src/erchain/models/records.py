"""Record data model.

Records are opaque to the pipeline core: it only passes them between
stages. Components that compare records read fields through
``Record.get`` and ``Record.project``.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

__all__ = ["Record", "RecordPair", "Block", "pair_id"]


@dataclass(frozen=True)
class Record:
    """A single input record.

    Equality and hashing use ``rid`` only, so records can be placed in
    blocks and pairs regardless of their field contents.

    Attributes
    ----------
    rid : str
        Stable record identifier.
    fields : dict[str, Any]
        Field name to value mapping.
    """

    rid: str
    fields: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get(self, attribute: str, default: Any = None) -> Any:
        """Return the value of *attribute* or *default*."""
        return self.fields.get(attribute, default)

    def project(self, attributes: Iterable[str] | None = None) -> str:
        """Join the string values of *attributes* with single spaces.

        Parameters
        ----------
        attributes : Iterable[str] | None, optional
            Attribute names to project. None or empty means all fields in
            sorted key order.

        Returns
        -------
        str
            Space-joined values; missing and None values are skipped.
        """
        names = list(attributes) if attributes else sorted(self.fields)
        values = [self.fields.get(name) for name in names]
        return " ".join(str(v) for v in values if v is not None and str(v) != "")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary with an ``rid`` key."""
        return {"rid": self.rid, **self.fields}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """Create a record from a flat dictionary.

        Raises
        ------
        KeyError
            If ``rid`` is missing.
        """
        payload = dict(data)
        rid = payload.pop("rid")
        return cls(rid=str(rid), fields=payload)


# An ordered pair of records considered jointly by a matcher.
RecordPair = tuple[Record, Record]

# Records grouped by a blocker as mutually comparable.
Block = frozenset[Record]


def pair_id(pair: RecordPair) -> str:
    """Return the deterministic identifier ``"rid_a|rid_b"`` of *pair*."""
    return f"{pair[0].rid}|{pair[1].rid}"
