"""
Centralized id generation for TalentRank.

Error ids and request ids share a single hex32 format.
"""

import re
import secrets
import uuid
from typing import Literal, Optional


IDFormat = Literal["hex32", "uuid4"]

_HEX32 = re.compile(r"^[0-9a-f]{32}$")


class IDGenerator:
    """Generates and validates ids used across TalentRank."""

    DEFAULT_FORMAT: IDFormat = "hex32"

    @staticmethod
    def generate(format: Optional[IDFormat] = None) -> str:
        """
        Generate an id in the requested format.

        Examples:
            >>> len(IDGenerator.generate("hex32"))
            32
            >>> len(IDGenerator.generate("uuid4"))
            36
        """
        format = format or IDGenerator.DEFAULT_FORMAT

        if format == "hex32":
            return secrets.token_hex(16)
        if format == "uuid4":
            return str(uuid.uuid4())
        raise ValueError(f"Unsupported id format: {format}")

    @staticmethod
    def is_valid(id_str: str) -> bool:
        """True if ``id_str`` is a hex32 id (dashes from uuid4 are tolerated)."""
        if not id_str:
            return False
        return bool(_HEX32.match(id_str.replace("-", "").lower()))


def generate_id() -> str:
    """Shortcut for the default hex32 format."""
    return IDGenerator.generate()


def is_valid_id(id_str: str) -> bool:
    return IDGenerator.is_valid(id_str)
