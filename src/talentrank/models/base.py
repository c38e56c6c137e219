"""
Base models.
Provides reusable configuration for all models.
"""

from pydantic import BaseModel, ConfigDict


class TalentRankBaseModel(BaseModel):
    """
    Base model for all of TalentRank.
    Common configuration and enhanced validation.
    """

    model_config = ConfigDict(
        # Validate values on assignment
        validate_assignment=True,
        # Use enum values
        use_enum_values=True,
        # Prevent extra fields
        extra="forbid",
        # Better documentation
        json_schema_extra={"additionalProperties": False},
    )


class FrozenModel(TalentRankBaseModel):
    """
    Immutable snapshot.

    Used for records the ranking engine only reads.
    """

    model_config = ConfigDict(frozen=True)
