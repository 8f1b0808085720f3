""" Names of route protocols, scopes and nexthop flags """

from typing import Dict, List, Tuple

from .core import NllInvalidArg

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *
from .groupspec import parse_unsigned

__all__ = (
    "ENCAP_NAMES",
    "GROUP_TYPE_NAMES",
    "nh_flags_n2a",
    "rtprot_a2n",
    "rtprot_n2a",
    "scope_n2a",
)

RTPROT_NAMES: Dict[int, str] = {
    RTPROT_UNSPEC: "unspec",
    RTPROT_REDIRECT: "redirect",
    RTPROT_KERNEL: "kernel",
    RTPROT_BOOT: "boot",
    RTPROT_STATIC: "static",
    RTPROT_GATED: "gated",
    RTPROT_RA: "ra",
    RTPROT_MRT: "mrt",
    RTPROT_ZEBRA: "zebra",
    RTPROT_BIRD: "bird",
    RTPROT_DNROUTED: "dnrouted",
    RTPROT_XORP: "xorp",
    RTPROT_NTK: "ntk",
    RTPROT_DHCP: "dhcp",
    RTPROT_MROUTED: "mrouted",
    RTPROT_KEEPALIVED: "keepalived",
    RTPROT_BABEL: "babel",
    RTPROT_OPENR: "openr",
    RTPROT_BGP: "bgp",
    RTPROT_ISIS: "isis",
    RTPROT_OSPF: "ospf",
    RTPROT_RIP: "rip",
    RTPROT_EIGRP: "eigrp",
}

RT_SCOPE_NAMES: Dict[int, str] = {
    RT_SCOPE_UNIVERSE: "global",
    RT_SCOPE_SITE: "site",
    RT_SCOPE_LINK: "link",
    RT_SCOPE_HOST: "host",
    RT_SCOPE_NOWHERE: "nowhere",
}

NH_FLAG_NAMES: Tuple[Tuple[int, str], ...] = (
    (RTNH_F_DEAD, "dead"),
    (RTNH_F_ONLINK, "onlink"),
    (RTNH_F_PERVASIVE, "pervasive"),
    (RTNH_F_OFFLOAD, "offload"),
    (RTNH_F_TRAP, "trap"),
    (RTM_F_NOTIFY, "notify"),
    (RTNH_F_LINKDOWN, "linkdown"),
    (RTNH_F_UNRESOLVED, "unresolved"),
    (RTM_F_OFFLOAD, "rt_offload"),
    (RTM_F_TRAP, "rt_trap"),
    (RTM_F_OFFLOAD_FAILED, "rt_offload_failed"),
)

ENCAP_NAMES: Dict[int, str] = {
    LWTUNNEL_ENCAP_MPLS: "mpls",
    LWTUNNEL_ENCAP_IP: "ip",
    LWTUNNEL_ENCAP_ILA: "ila",
    LWTUNNEL_ENCAP_IP6: "ip6",
    LWTUNNEL_ENCAP_SEG6: "seg6",
    LWTUNNEL_ENCAP_BPF: "bpf",
    LWTUNNEL_ENCAP_SEG6_LOCAL: "seg6local",
    LWTUNNEL_ENCAP_RPL: "rpl",
    LWTUNNEL_ENCAP_IOAM6: "ioam6",
    LWTUNNEL_ENCAP_XFRM: "xfrm",
}

GROUP_TYPE_NAMES: Dict[int, str] = {
    NEXTHOP_GRP_TYPE_MPATH: "mpath",
    NEXTHOP_GRP_TYPE_RES: "resilient",
}


def rtprot_n2a(protocol: int) -> str:
    return RTPROT_NAMES.get(protocol, str(protocol))


def rtprot_a2n(name: str) -> int:
    """Protocol number from its name or from a number in 0..255"""
    for num, known in RTPROT_NAMES.items():
        if known == name:
            return num
    try:
        return parse_unsigned(name, "protocol", 255)
    except NllInvalidArg as e:
        raise NllInvalidArg('"protocol" value is invalid', name) from e


def scope_n2a(scope: int) -> str:
    return RT_SCOPE_NAMES.get(scope, str(scope))


def nh_flags_n2a(flags: int) -> List[str]:
    return [name for bit, name in NH_FLAG_NAMES if flags & bit]
