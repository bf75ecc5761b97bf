"""Pydantic models for DoH JSON responses."""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from dohdig.dns.qtype import AnyQueryType, QueryType


class _WireModel(BaseModel):
    """Base for models decoded from the DoH JSON wire names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class DnsQuestion(_WireModel):
    """Question section entry."""

    name: str
    type: int = Field(ge=0, le=65535)

    @property
    def qtype(self) -> AnyQueryType:
        return QueryType.from_code(self.type)


class DnsAuthority(_WireModel):
    """Authority section record."""

    name: str
    type: int = Field(ge=0, le=65535)
    ttl: int = Field(alias="TTL", ge=0, le=0xFFFFFFFF)
    data: str

    @property
    def qtype(self) -> AnyQueryType:
        return QueryType.from_code(self.type)


class DnsAnswer(DnsAuthority):
    """Answer section record."""

    expires: Optional[str] = None


class DnsResponse(_WireModel):
    """
    Decoded DoH JSON answer.

    Every field is optional: None means the provider omitted it, which is
    not the same as an empty section.
    """

    error: Optional[str] = None
    status: Optional[int] = Field(default=None, alias="Status")

    # Header flags, decoded but not rendered
    tc: Optional[bool] = Field(default=None, alias="TC")
    rd: Optional[bool] = Field(default=None, alias="RD")
    ra: Optional[bool] = Field(default=None, alias="RA")
    ad: Optional[bool] = Field(default=None, alias="AD")
    cd: Optional[bool] = Field(default=None, alias="CD")

    question: Optional[List[DnsQuestion]] = Field(default=None, alias="Question")
    answer: Optional[List[DnsAnswer]] = Field(default=None, alias="Answer")
    authority: Optional[List[DnsAuthority]] = Field(default=None, alias="Authority")
    comment: Optional[Any] = Field(default=None, alias="Comment")


class DnsError(_WireModel):
    """A failed query attempt, as reported by the transport."""

    code: int
    message: str


QueryOutcome = Union[DnsResponse, DnsError]


def is_success(outcome: QueryOutcome) -> bool:
    """Check if a query outcome carries a decoded response."""
    return isinstance(outcome, DnsResponse)
