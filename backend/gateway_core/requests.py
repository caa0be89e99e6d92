"""
Typed request shapes for the terminal wire operations.

Each shape fails closed when ``SN`` is missing or blank and ignores any
parameters it does not know about.
"""

from collections.abc import Mapping
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gateway_core.exceptions import PreconditionError


class TerminalRequest(BaseModel):
    """Query parameters common to every terminal request."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    operation: ClassVar[str] = "terminal request"

    serial: str = Field(alias="SN", min_length=1)

    @classmethod
    def from_query(cls, query: Mapping[str, str]):
        """Build the shape from raw query parameters.

        Raises:
            PreconditionError: if ``SN`` is absent or blank.
        """
        params = {key: value for key, value in query.items()}
        serial = (params.get("SN") or "").strip()
        if not serial:
            raise PreconditionError(cls.operation)
        params["SN"] = serial
        try:
            return cls.model_validate(params)
        except ValidationError as exc:
            raise PreconditionError(cls.operation) from exc


class InitRequest(TerminalRequest):
    """``GET <prefix>/cdata``: terminal registration."""

    operation: ClassVar[str] = "init"

    options: str | None = None
    push_version: str | None = Field(default=None, alias="pushver")
    language: str | None = None


class UploadRequest(TerminalRequest):
    """``POST <prefix>/cdata``: table upload."""

    operation: ClassVar[str] = "upload"

    table: str | None = None
    stamp: str | None = Field(default=None, alias="Stamp")


class PollRequest(TerminalRequest):
    """``GET <prefix>/getrequest``: command poll."""

    operation: ClassVar[str] = "poll"


class AckRequest(TerminalRequest):
    """``POST <prefix>/devicecmd``: command results."""

    operation: ClassVar[str] = "acknowledge"
