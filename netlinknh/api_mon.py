""" Nexthop change notifications """

from socket import socket
from typing import Any, Callable, Dict, Iterator, Tuple, Union

from .core import nll_listen, nll_make_event_listener

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *
from .parser_nexthop import BucketAccum, NhAccum, bucket_parser, nh_parser
from .selector import NhSelector

__all__ = ("nll_nh_event_listener", "nll_nh_events")

_DELETE_EVENTS = (RTM_DELNEXTHOP, RTM_DELNEXTHOPBUCKET)
_Parser = Callable[[Any, bytes], Tuple[Any, bytes]]


def nll_nh_event_listener(block: bool = False) -> socket:
    """
    Create socket joined to the nexthop group, for use with
    `nll_nh_events`. See `nll_make_event_listener` for `block`.
    """
    return nll_make_event_listener(RTNLGRP_NEXTHOP, block=block)


def nll_nh_events(
    sk: socket, selector: NhSelector = NhSelector()
) -> Iterator[Union[NhAccum, BucketAccum]]:
    """
    Parse nexthop and bucket notifications from the socket. Nexthops
    not matching the selector are skipped, `deleted` is set for
    removals.
    """
    nhparse = nh_parser(selector).parse
    bucketparse = bucket_parser().parse
    accum_parser: Dict[int, Tuple[Callable[[], Any], _Parser]] = {
        RTM_NEWNEXTHOP: (NhAccum, nhparse),
        RTM_DELNEXTHOP: (NhAccum, nhparse),
        RTM_NEWNEXTHOPBUCKET: (BucketAccum, bucketparse),
        RTM_DELNEXTHOPBUCKET: (BucketAccum, bucketparse),
    }
    for msg_type, accum in nll_listen(accum_parser, sk):
        if isinstance(accum, NhAccum) and not selector.matches(accum):
            continue
        accum.deleted = msg_type in _DELETE_EVENTS
        yield accum
