"""
Core Data Models for Punchclock

These models define the strict schemas for the three persisted entity
kinds: User, Project and TimeCard.
They are designed to:
1. Enforce type safety at runtime
2. Keep every free-text field storable in a pipe-delimited row
3. Replace the overloaded "clocked in status" string with a tagged variant

DESIGN DECISION: A User's clock state is either ClockedOut or
ClockedIn(project_id). It is only flattened to the legacy "out" / "<id>"
text at the storage boundary.
"""

from datetime import datetime, timedelta
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)


FIELD_DELIMITER = "|"

# Description written on a time card that closes a session
CLOCK_OUT_DESCRIPTION = "CLOCKING OUT"

# Clock-in punches are stamped one tick after the operation instant so
# they always sort after a clock-out synthesized in the same step.
PUNCH_TICK = timedelta(seconds=1)

CLOCKED_OUT_TAG = "out"


def _check_storable(value: str) -> str:
    """Reject text that would break a delimited row."""
    if FIELD_DELIMITER in value:
        raise ValueError(f"Text must not contain the '{FIELD_DELIMITER}' character")
    if "\n" in value or "\r" in value:
        raise ValueError("Text must fit on a single line")
    return value


# Limits for text typed at a menu: (required, max length).
# Rows read back from the stores are taken as they are.
ENTRY_LIMITS = {
    "first_name": (True, 100),
    "last_name": (False, 100),
    "name": (True, 200),
    "description": (False, 1000),
}


def entered(*fields: str) -> dict:
    """Validation context marking fields as freshly entered by the user."""
    return {"entered": frozenset(fields)}


def _check_entry_limits(value: str, info: ValidationInfo) -> str:
    if info.field_name not in (info.context or {}).get("entered", ()):
        return value
    required, max_length = ENTRY_LIMITS[info.field_name]
    if required and not value:
        raise ValueError("Text must not be empty")
    if len(value) > max_length:
        raise ValueError(f"Text must be at most {max_length} characters")
    return value


# =============================================================================
# CLOCK STATE
# =============================================================================

class ClockedOut(BaseModel):
    """The user is not working on any project."""
    model_config = ConfigDict(frozen=True)

    state: Literal["out"] = "out"

    def to_tag(self) -> str:
        return CLOCKED_OUT_TAG


class ClockedIn(BaseModel):
    """The user is working on the referenced project."""
    model_config = ConfigDict(frozen=True)

    state: Literal["in"] = "in"
    project_id: int = Field(..., ge=1)

    def to_tag(self) -> str:
        return str(self.project_id)


ClockState = Annotated[Union[ClockedOut, ClockedIn], Field(discriminator="state")]


def clock_state_from_tag(tag: str) -> Union[ClockedOut, ClockedIn]:
    """
    Decode the stored clock tag.

    Raises:
        ValueError: if the tag is neither "out" nor a positive integer
    """
    tag = tag.strip()
    if tag == CLOCKED_OUT_TAG:
        return ClockedOut()
    if not tag.isdigit():
        raise ValueError(f"Invalid clock tag: {tag!r}")
    return ClockedIn(project_id=int(tag))


# =============================================================================
# RECORDS
# =============================================================================

class User(BaseModel):
    """
    A person who clocks in and out of projects.

    Invariant: when clocked out, last_time_punch is the last clock-out
    (or None if the user never clocked in); when clocked in, it is the
    clock-in punch of the running session.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(..., ge=1, description="Assigned at creation, immutable")
    first_name: str
    last_name: str = ""
    clock_state: ClockState = Field(default_factory=ClockedOut)
    last_time_punch: Optional[datetime] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_storable(cls, v: str, info: ValidationInfo) -> str:
        return _check_entry_limits(_check_storable(v), info)

    @property
    def is_clocked_in(self) -> bool:
        return isinstance(self.clock_state, ClockedIn)

    @property
    def clocked_project_id(self) -> Optional[int]:
        """Project the user is clocked into, None when clocked out."""
        if isinstance(self.clock_state, ClockedIn):
            return self.clock_state.project_id
        return None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Project(BaseModel):
    """
    A named piece of work time is booked against.

    total_time only grows, and only through a clock-out that
    references this project.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(..., ge=1, description="Assigned at creation, immutable")
    name: str
    description: str = ""
    total_time: int = Field(default=0, ge=0, description="Accumulated minutes")

    @field_validator("name", "description")
    @classmethod
    def validate_storable(cls, v: str, info: ValidationInfo) -> str:
        return _check_entry_limits(_check_storable(v), info)


class TimeCard(BaseModel):
    """
    A single punch in the append-only time card log.

    The description is either the session description given at clock-in
    or CLOCK_OUT_DESCRIPTION for a clock-out.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(..., ge=1)
    user_id: int = Field(..., ge=1)
    project_id: int = Field(..., ge=1)
    time_punch: datetime
    description: str = ""

    @field_validator("description")
    @classmethod
    def validate_storable(cls, v: str, info: ValidationInfo) -> str:
        return _check_entry_limits(_check_storable(v), info)

    @property
    def is_clock_out(self) -> bool:
        return self.description == CLOCK_OUT_DESCRIPTION
