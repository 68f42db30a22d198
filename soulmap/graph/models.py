"""Schema of a model-proposed graph extraction.

The language model only ever speaks in labels, so an extraction is a list
of ``(label, type)`` nodes and of ``(from, to, weight)`` edges that refer to
those labels.  Decoding goes through these Pydantic models so a malformed
reply is rejected as a whole instead of half-merged.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

NODE_TYPES = ("emotion", "theme", "person", "event")


class ProposedNode(BaseModel):
    label: str = Field(min_length=1)
    type: str = Field(min_length=1)

    @field_validator("label", mode="before")
    @classmethod
    def _strip_label(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value: object) -> object:
        # Open vocabulary: unknown types are kept, just lower-cased.
        return value.strip().lower() if isinstance(value, str) else value


class ProposedEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    weight: float

    @field_validator("from_", "to", mode="before")
    @classmethod
    def _strip_labels(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("weight")
    @classmethod
    def _clamp_weight(cls, value: float) -> float:
        return max(-1.0, min(1.0, value))


class Extraction(BaseModel):
    nodes: list[ProposedNode] = Field(default_factory=list)
    edges: list[ProposedEdge] = Field(default_factory=list)

    @field_validator("nodes", "edges", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges
