""" Nexthop data types and their attribute encodings """

from struct import pack, unpack
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .classes import nexthop_grp
from .core import NllDecodeError, NllInvalidArg, _NlaScalar

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *

__all__ = (
    "HZ",
    "NH_WEIGHT_MAX",
    "NhEncap",
    "NhGrpMember",
    "NhResArgs",
    "NlaMplsLabels",
    "NlaNhGroup",
    "seconds_to_ticks",
    "ticks_to_seconds",
)

HZ = 100  # USER_HZ, unit of clock_t values exchanged with the kernel
NH_WEIGHT_MAX = 256
MAX_U32 = 2**32 - 1
MPLS_LABEL_MAX = 2**20 - 1


class NhGrpMember(NamedTuple):
    """Reference to another nexthop by id, with weight in 1..256"""

    id: int
    weight: int = 1


class NhResArgs(NamedTuple):
    """Resilient group arguments, timers in seconds"""

    buckets: Optional[int] = None
    idle_timer: Optional[int] = None
    unbalanced_timer: Optional[int] = None


class NhEncap(NamedTuple):
    """Lightweight tunnel encapsulation, LWTUNNEL_ENCAP_* type"""

    type: int
    labels: Tuple[int, ...] = ()


def seconds_to_ticks(seconds: int, what: str = "timer") -> int:
    """Convert user supplied timer to clock ticks, checking for overflow"""
    if seconds < 0 or seconds * HZ > MAX_U32:
        raise NllInvalidArg(f"invalid {what} value", str(seconds))
    return seconds * HZ


def ticks_to_seconds(ticks: int) -> float:
    return ticks / HZ


class NlaNhGroup(_NlaScalar[Sequence[NhGrpMember]]):
    """
    NHA_GROUP: flat array of `struct nexthop_grp`. Weight is
    transmitted as `weight - 1`, so that 1..256 fits into a byte.
    """

    def encode_payload(self) -> bytes:
        assert self.val is not None
        for member in self.val:
            if not 1 <= member.weight <= NH_WEIGHT_MAX:
                raise NllInvalidArg('"weight" is invalid', str(member.weight))
            if not 0 <= member.id <= MAX_U32:
                raise NllInvalidArg('"id" is invalid', str(member.id))
        return b"".join(
            bytes(nexthop_grp(id=member.id, weight=member.weight - 1))
            for member in self.val
        )

    def from_bytes(self, data: bytes) -> List[NhGrpMember]:
        if not data or len(data) % nexthop_grp.SIZE:
            raise NllDecodeError(
                f"invalid nexthop group of {len(data)} bytes:"
                f" {bytes(data).hex()}"
            )
        size = nexthop_grp.SIZE
        members = []
        for offset in range(0, len(data), size):
            grp = nexthop_grp.unpack(data[offset : offset + size])
            members.append(NhGrpMember(grp["id"], grp["weight"] + 1))
        return members


class NlaMplsLabels(_NlaScalar[Tuple[int, ...]]):
    """MPLS_IPTUNNEL_DST: label stack entries in network byte order"""

    def encode_payload(self) -> bytes:
        assert self.val is not None
        for label in self.val:
            if not 0 <= label <= MPLS_LABEL_MAX:
                raise NllInvalidArg("invalid MPLS label", str(label))
        return b"".join(
            pack(
                ">I",
                (label << MPLS_LS_LABEL_SHIFT)
                | (1 << MPLS_LS_S_SHIFT if idx == len(self.val) - 1 else 0),
            )
            for idx, label in enumerate(self.val)
        )

    def from_bytes(self, data: bytes) -> Tuple[int, ...]:
        if not data or len(data) % 4:
            raise NllDecodeError(
                f"invalid MPLS label stack of {len(data)} bytes"
            )
        return tuple(
            (entry & MPLS_LS_LABEL_MASK) >> MPLS_LS_LABEL_SHIFT
            for entry in unpack(f">{len(data) // 4}I", data)
        )
