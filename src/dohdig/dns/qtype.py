"""DNS record type codes as they appear in DoH JSON responses."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union


class QueryType(IntEnum):
    """Record types with a symbolic name in rendered output."""

    A = 1
    NS = 2
    CNAME = 5
    SOA = 6
    PTR = 12
    MX = 15
    TXT = 16
    AAAA = 28
    SRV = 33
    CAA = 257

    def __str__(self) -> str:
        return self.name

    def __format__(self, format_spec: str) -> str:
        return format(self.name, format_spec)

    @classmethod
    def from_code(cls, code: int) -> "AnyQueryType":
        """
        Map a numeric type code to its QueryType.

        Never fails: codes outside the known set come back as UnknownQueryType
        carrying the original value.
        """
        try:
            return cls(code)
        except ValueError:
            return UnknownQueryType(code)


@dataclass(frozen=True)
class UnknownQueryType:
    """A type code without a symbolic name."""

    code: int

    def __str__(self) -> str:
        return f"Unknown({self.code})"


AnyQueryType = Union[QueryType, UnknownQueryType]
