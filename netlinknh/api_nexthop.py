""" Nexthop object requests: add, replace, delete, get and dumps """

from functools import partial
from ipaddress import ip_address
from logging import getLogger
from socket import AF_INET, AF_INET6, AF_UNSPEC, socket
from typing import Any, Iterator, Optional, Sequence, Tuple

from .classes import nhmsg
from .core import (
    NLL_MSGSIZE,
    NlaFlag,
    NlaIp,
    NlaNest,
    NlaStruct,
    NlaUInt16,
    NlaUInt32,
    NllError,
    NllInvalidArg,
    NllMsg,
    nll_get_dump,
    nll_transact,
)
from .datatypes import (
    NhEncap,
    NhGrpMember,
    NhResArgs,
    NlaMplsLabels,
    NlaNhGroup,
    seconds_to_ticks,
)

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *
from .parser_nexthop import BucketAccum, NhAccum, bucket_parser, nh_parser
from .selector import NhSelector

__all__ = (
    "nh_attrs",
    "nll_get_nexthop_buckets",
    "nll_get_nexthops",
    "nll_nh_add",
    "nll_nh_bucket_get",
    "nll_nh_del",
    "nll_nh_get",
    "nll_nh_replace",
)

log = getLogger(__name__)

MAX_U16 = 2**16 - 1


def _gateway_family(gateway: str) -> int:
    try:
        return AF_INET6 if ip_address(gateway).version == 6 else AF_INET
    except ValueError as e:
        raise NllInvalidArg("invalid address", gateway) from e


def _encap_attrs(encap: Optional[NhEncap]) -> Tuple[NllMsg, ...]:
    if encap is None:
        return ()
    if encap.type != LWTUNNEL_ENCAP_MPLS:
        raise NllInvalidArg("unsupported encap type", str(encap.type))
    if not encap.labels:
        raise NllInvalidArg("invalid MPLS label", "")
    return (
        NlaNest(NHA_ENCAP, NlaMplsLabels(MPLS_IPTUNNEL_DST, encap.labels)),
        NlaUInt16(NHA_ENCAP_TYPE, encap.type),
    )


def _res_attrs(res_args: Optional[NhResArgs]) -> NllMsg:
    res = res_args or NhResArgs()
    if res.buckets is not None and not 0 <= res.buckets <= MAX_U16:
        raise NllInvalidArg("invalid buckets value", str(res.buckets))
    return NlaNest(
        NHA_RES_GROUP,
        NlaUInt16(NHA_RES_GROUP_BUCKETS, res.buckets),
        NlaUInt32(
            NHA_RES_GROUP_IDLE_TIMER,
            None
            if res.idle_timer is None
            else seconds_to_ticks(res.idle_timer, "idle timer"),
        ),
        NlaUInt32(
            NHA_RES_GROUP_UNBALANCED_TIMER,
            None
            if res.unbalanced_timer is None
            else seconds_to_ticks(res.unbalanced_timer, "unbalanced timer"),
        ),
    )


def nh_attrs(  # pylint: disable=too-many-arguments, too-many-locals
    id: Optional[int] = None,  # pylint: disable=redefined-builtin
    family: int = AF_UNSPEC,
    protocol: int = RTPROT_UNSPEC,
    scope: int = RT_SCOPE_UNIVERSE,
    onlink: bool = False,
    oif: Optional[int] = None,
    gateway: Optional[str] = None,
    blackhole: bool = False,
    unreachable: bool = False,
    prohibit: bool = False,
    group: Optional[Sequence[NhGrpMember]] = None,
    group_type: Optional[int] = None,
    res_args: Optional[NhResArgs] = None,
    encap: Optional[NhEncap] = None,
    fdb: bool = False,
) -> NlaStruct:
    """
    Body of a nexthop request. Address family comes from the gateway
    if one is given, otherwise defaults to AF_INET for device bound
    and blackhole-like nexthops.
    """
    if gateway is not None:
        gwfamily = _gateway_family(gateway)
        if family == AF_UNSPEC:
            family = gwfamily
        elif family != gwfamily:
            raise NllInvalidArg("address family mismatch", gateway)
    elif family == AF_UNSPEC and (
        oif is not None or blackhole or unreachable or prohibit
    ):
        family = AF_INET
    if res_args is not None and group_type != NEXTHOP_GRP_TYPE_RES:
        raise NllInvalidArg(
            "only resilient groups take these arguments", "type"
        )
    return NlaStruct(
        nhmsg(
            nh_family=family,
            nh_scope=scope,
            nh_protocol=protocol,
            nh_flags=RTNH_F_ONLINK if onlink else 0,
        ),
        NlaUInt32(NHA_ID, id),
        NlaNhGroup(NHA_GROUP, group),
        _res_attrs(res_args),
        NlaUInt16(NHA_GROUP_TYPE, group_type),
        NlaFlag(NHA_BLACKHOLE, blackhole),
        NlaFlag(NHA_UNREACHABLE, unreachable),
        NlaFlag(NHA_PROHIBIT, prohibit),
        NlaUInt32(NHA_OIF, oif),
        NlaIp(NHA_GATEWAY, gateway),
        *_encap_attrs(encap),
        NlaFlag(NHA_FDB, fdb),
    )


def _check_action(**kwargs: Any) -> None:
    actions = [
        name
        for name, present in (
            (
                "dev/via",
                kwargs.get("oif") is not None
                or kwargs.get("gateway") is not None,
            ),
            ("blackhole", kwargs.get("blackhole")),
            ("unreachable", kwargs.get("unreachable")),
            ("prohibit", kwargs.get("prohibit")),
            ("group", kwargs.get("group") is not None),
        )
        if present
    ]
    if not actions:
        raise NllInvalidArg(
            "one of dev, via, blackhole, unreachable, prohibit or group"
            " is required",
            "",
        )
    if len(actions) > 1:
        raise NllInvalidArg("conflicting nexthop actions", ",".join(actions))


def _nll_nh_modify(
    nlm_flags: int,
    sk: Optional[socket] = None,
    msgsize: int = NLL_MSGSIZE,
    **kwargs: Any,
) -> None:
    _check_action(**kwargs)
    nll_transact(
        RTM_NEWNEXTHOP,
        RTM_NEWNEXTHOP,
        nh_attrs(**kwargs),
        sk=sk,
        flags=nlm_flags,
        msgsize=msgsize,
    )


nll_nh_add = partial(_nll_nh_modify, NLM_F_CREATE | NLM_F_EXCL)
nll_nh_replace = partial(_nll_nh_modify, NLM_F_CREATE | NLM_F_REPLACE)


def nll_nh_del(
    id: int,  # pylint: disable=redefined-builtin
    sk: Optional[socket] = None,
    msgsize: int = NLL_MSGSIZE,
) -> None:
    """Delete nexthop object by id"""
    nll_transact(
        RTM_DELNEXTHOP,
        RTM_DELNEXTHOP,
        nh_attrs(id=id),
        sk=sk,
        msgsize=msgsize,
    )


def nll_nh_get(
    id: int,  # pylint: disable=redefined-builtin
    family: int = AF_UNSPEC,
    sk: Optional[socket] = None,
    msgsize: int = NLL_MSGSIZE,
) -> NhAccum:
    """Fetch single nexthop object by id"""
    msg = nll_transact(
        RTM_GETNEXTHOP,
        RTM_NEWNEXTHOP,
        nh_attrs(id=id, family=family),
        sk=sk,
        msgsize=msgsize,
    )
    if not msg:
        raise NllError(f"No nexthop in reply to the request for id {id}")
    return nh_parser().parse(NhAccum(), msg)[0]


def nll_get_nexthops(
    selector: NhSelector = NhSelector(),
    family: int = AF_UNSPEC,
    sk: Optional[socket] = None,
    msgsize: int = NLL_MSGSIZE,
) -> Iterator[NhAccum]:
    """
    Dump nexthop objects. Records are produced as the kernel sends
    them, so the consumer may act on each before the dump completes.
    """
    log.debug("nexthop dump %s family %d", selector, family)
    return nll_get_dump(
        RTM_GETNEXTHOP,
        RTM_NEWNEXTHOP,
        NlaStruct(nhmsg(nh_family=family), *selector.dump_attrs()),
        NhAccum,
        nh_parser(selector).parse,
        sk=sk,
        msgsize=msgsize,
    )


def nll_get_nexthop_buckets(
    selector: NhSelector = NhSelector(),
    family: int = AF_UNSPEC,
    sk: Optional[socket] = None,
    msgsize: int = NLL_MSGSIZE,
) -> Iterator[BucketAccum]:
    """Dump buckets of resilient groups"""
    log.debug("bucket dump %s family %d", selector, family)
    return nll_get_dump(
        RTM_GETNEXTHOPBUCKET,
        RTM_NEWNEXTHOPBUCKET,
        NlaStruct(nhmsg(nh_family=family), *selector.bucket_dump_attrs()),
        BucketAccum,
        bucket_parser().parse,
        sk=sk,
        msgsize=msgsize,
    )


def nll_nh_bucket_get(  # pylint: disable=too-many-arguments
    id: int,  # pylint: disable=redefined-builtin
    index: int,
    family: int = AF_UNSPEC,
    sk: Optional[socket] = None,
    msgsize: int = NLL_MSGSIZE,
) -> BucketAccum:
    """Fetch single bucket of a resilient group"""
    if not 0 <= index <= MAX_U16:
        raise NllInvalidArg("invalid bucket index value", str(index))
    msg = nll_transact(
        RTM_GETNEXTHOPBUCKET,
        RTM_NEWNEXTHOPBUCKET,
        NlaStruct(
            nhmsg(nh_family=family),
            NlaUInt32(NHA_ID, id),
            NlaNest(
                NHA_RES_BUCKET, NlaUInt16(NHA_RES_BUCKET_INDEX, index)
            ),
        ),
        sk=sk,
        msgsize=msgsize,
    )
    if not msg:
        raise NllError(f"No bucket in reply to the request for id {id}")
    return bucket_parser().parse(BucketAccum(), msg)[0]
