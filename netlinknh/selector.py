""" Selection of nexthop objects for dump and flush """

from typing import Any, NamedTuple, Optional, Tuple

from .core import NlaFlag, NlaNest, NlaUInt32, NllMsg, StopParsing

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *

__all__ = ("NhSelector",)


class NhSelector(NamedTuple):
    """
    Criteria for nexthop dumps. Unset criteria do not restrict.
    Everything except `protocol` goes to the kernel in the request,
    `protocol` is matched on our side while parsing replies, and
    protocol 0 (unspec) matches any.
    """

    oif: Optional[int] = None
    master: Optional[int] = None
    protocol: Optional[int] = None
    id: Optional[int] = None
    nhid: Optional[int] = None
    groups: bool = False
    fdb: bool = False

    def is_all(self) -> bool:
        return self == NhSelector()

    def with_groups(self, groups: bool) -> "NhSelector":
        return self._replace(groups=groups)

    def dump_attrs(self) -> Tuple[NllMsg, ...]:
        return (
            NlaUInt32(NHA_OIF, self.oif),
            NlaFlag(NHA_GROUPS, self.groups),
            NlaUInt32(NHA_MASTER, self.master),
            NlaFlag(NHA_FDB, self.fdb),
        )

    def bucket_dump_attrs(self) -> Tuple[NllMsg, ...]:
        return (
            *self.dump_attrs(),
            NlaUInt32(NHA_ID, self.id),
            NlaNest(
                NHA_RES_BUCKET, NlaUInt32(NHA_RES_BUCKET_NH_ID, self.nhid)
            ),
        )

    def keep_protocol(self, accum: Any, protocol: int) -> Any:
        """Header callback: drop the record if protocol does not match"""
        if self.protocol and protocol != self.protocol:
            raise StopParsing
        accum.protocol = protocol
        return accum

    def matches(self, nh: Any) -> bool:
        """Check parsed nexthop against the criteria that it carries"""
        if self.protocol and nh.protocol != self.protocol:
            return False
        if self.id is not None and nh.id != self.id:
            return False
        if self.oif is not None and nh.oif != self.oif:
            return False
        if self.groups and nh.group is None:
            return False
        if self.fdb and not nh.fdb:
            return False
        return True
