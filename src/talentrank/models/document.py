"""
Candidate document snapshot.

Documents are owned by the storage collaborator; the ranking engine only
receives read-only copies of them.
"""

import json
from typing import Any, Optional, Tuple

from pydantic import Field, field_validator

from talentrank.models.base import FrozenModel


class Document(FrozenModel):
    """
    Candidate document with an optional precomputed embedding.

    ``embedding`` is absent until the ingestion pipeline computes it. Once
    set it is never mutated: re-embedding produces a new Document.
    """

    id: str = Field(..., min_length=1, description="Document identifier")
    scope_key: str = Field(..., min_length=1, description="Caller scope (e.g. owning user)")
    text: str = Field(..., description="Extracted plain text")
    embedding: Optional[Tuple[float, ...]] = Field(
        None, description="Precomputed embedding vector"
    )
    source_ref: Optional[str] = Field(None, description="Original file name or path")

    @field_validator("id", "scope_key")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("embedding", mode="before")
    @classmethod
    def parse_embedding(cls, v: Any) -> Any:
        """
        Accept the shapes storage hands out.

        Vector columns may come back as JSON strings; numpy arrays and
        lists pass through. An empty vector means "not computed".
        """
        if v is None:
            return None
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            try:
                v = json.loads(v)
            except ValueError as e:
                raise ValueError(f"Embedding string is not valid JSON: {e}")
            if v is None:
                return None
        if hasattr(v, "tolist"):
            v = v.tolist()
        if isinstance(v, (list, tuple)):
            if len(v) == 0:
                return None
            return tuple(float(x) for x in v)
        raise ValueError(f"Unsupported embedding type: {type(v).__name__}")

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    @property
    def display_name(self) -> str:
        """Name shown to users: the source file when known, the id otherwise."""
        return self.source_ref or self.id
