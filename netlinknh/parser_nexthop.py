""" Parsers for nexthop and nexthop bucket messages """

from typing import List, Optional

from .classes import nhmsg
from .core import (
    NlaBytes,
    NlaFlag,
    NlaIp,
    NlaNest,
    NlaStruct,
    NlaUInt16,
    NlaUInt32,
    NlaUInt64,
    NllAccum,
    saveas,
)
from .datatypes import (
    NhEncap,
    NhGrpMember,
    NlaMplsLabels,
    NlaNhGroup,
    ticks_to_seconds,
)

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *
from .selector import NhSelector

__all__ = ("BucketAccum", "NhAccum", "bucket_parser", "nh_parser")


class NhAccum(NllAccum):
    """Nexthop object as reported by the kernel"""

    __slots__ = (
        "deleted",
        "family",
        "scope",
        "protocol",
        "flags",
        "id",
        "group",
        "group_type",
        "buckets",
        "idle_timer",
        "unbalanced_timer",
        "unbalanced_time",
        "gateway",
        "oif",
        "encap_type",
        "encap",
        "blackhole",
        "unreachable",
        "prohibit",
        "fdb",
    )

    def __init__(self) -> None:
        self.deleted = False
        self.family = 0
        self.scope = 0
        self.protocol = 0
        self.flags = 0
        self.id: Optional[int] = None
        self.group: Optional[List[NhGrpMember]] = None
        self.group_type: Optional[int] = None
        self.buckets: Optional[int] = None
        self.idle_timer: Optional[float] = None
        self.unbalanced_timer: Optional[float] = None
        self.unbalanced_time: Optional[float] = None
        self.gateway: Optional[str] = None
        self.oif: Optional[int] = None
        self.encap_type: Optional[int] = None
        self.encap: Optional[bytes] = None
        self.blackhole = False
        self.unreachable = False
        self.prohibit = False
        self.fdb = False

    @property
    def resilient(self) -> bool:
        return self.group_type == NEXTHOP_GRP_TYPE_RES

    @property
    def encap_info(self) -> Optional[NhEncap]:
        """Encapsulation with the MPLS label stack decoded"""
        if self.encap_type is None:
            return None
        if self.encap_type != LWTUNNEL_ENCAP_MPLS or not self.encap:
            return NhEncap(self.encap_type)
        # NHA_ENCAP_TYPE may arrive after NHA_ENCAP: decode lazily
        return _mpls_encap.parse_payload(
            NhEncap(self.encap_type), self.encap
        )


class BucketAccum(NllAccum):
    """Single bucket of a resilient nexthop group"""

    __slots__ = (
        "deleted",
        "family",
        "flags",
        "id",
        "index",
        "idle_time",
        "nhid",
    )

    def __init__(self) -> None:
        self.deleted = False
        self.family = 0
        self.flags = 0
        self.id: Optional[int] = None
        self.index: Optional[int] = None
        self.idle_time: Optional[float] = None
        self.nhid: Optional[int] = None


_mpls_encap = NlaNest(
    NHA_ENCAP,
    NlaMplsLabels(
        MPLS_IPTUNNEL_DST,
        lambda encap, labels: encap._replace(labels=labels),
    ),
)


def nh_parser(selector: Optional[NhSelector] = None) -> NlaStruct:
    """
    Parser for RTM_NEWNEXTHOP and RTM_DELNEXTHOP messages. Records of
    other protocol than the selector asks for are skipped.
    """
    return NlaStruct(
        nhmsg(
            nh_family=saveas("family"),
            nh_scope=saveas("scope"),
            nh_protocol=(selector or NhSelector()).keep_protocol,
            nh_flags=saveas("flags"),
        ),
        NlaUInt32(NHA_ID, saveas("id")),
        NlaNhGroup(NHA_GROUP, saveas("group")),
        NlaUInt16(NHA_GROUP_TYPE, saveas("group_type")),
        NlaFlag(NHA_BLACKHOLE, saveas("blackhole")),
        NlaUInt32(NHA_OIF, saveas("oif")),
        NlaIp(NHA_GATEWAY, saveas("gateway")),
        NlaUInt16(NHA_ENCAP_TYPE, saveas("encap_type")),
        NlaBytes(NHA_ENCAP, saveas("encap")),
        NlaFlag(NHA_FDB, saveas("fdb")),
        NlaNest(
            NHA_RES_GROUP,
            NlaUInt16(NHA_RES_GROUP_BUCKETS, saveas("buckets")),
            NlaUInt32(
                NHA_RES_GROUP_IDLE_TIMER,
                saveas("idle_timer", ticks_to_seconds),
            ),
            NlaUInt32(
                NHA_RES_GROUP_UNBALANCED_TIMER,
                saveas("unbalanced_timer", ticks_to_seconds),
            ),
            NlaUInt64(
                NHA_RES_GROUP_UNBALANCED_TIME,
                saveas("unbalanced_time", ticks_to_seconds),
            ),
        ),
        NlaFlag(NHA_UNREACHABLE, saveas("unreachable")),
        NlaFlag(NHA_PROHIBIT, saveas("prohibit")),
    )


def bucket_parser() -> NlaStruct:
    """Parser for RTM_NEWNEXTHOPBUCKET and RTM_DELNEXTHOPBUCKET messages"""
    return NlaStruct(
        nhmsg(nh_family=saveas("family"), nh_flags=saveas("flags")),
        NlaUInt32(NHA_ID, saveas("id")),
        NlaNest(
            NHA_RES_BUCKET,
            NlaUInt16(NHA_RES_BUCKET_INDEX, saveas("index")),
            NlaUInt64(
                NHA_RES_BUCKET_IDLE_TIME,
                saveas("idle_time", ticks_to_seconds),
            ),
            NlaUInt32(NHA_RES_BUCKET_NH_ID, saveas("nhid")),
        ),
    )
