""" Parser for link messages, used for interface name resolution """

from typing import Optional

from .classes import ifinfomsg
from .core import NlaNest, NlaStr, NlaStruct, NllAccum, saveas

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *

__all__ = ("LinkAccum", "link_parser")


class LinkAccum(NllAccum):
    __slots__ = ("index", "name", "kind")

    def __init__(self) -> None:
        self.index = 0
        self.name: Optional[str] = None
        self.kind: Optional[str] = None


def link_parser() -> NlaStruct:
    """Parser for NEWLINK message, only the bits needed for naming"""
    return NlaStruct(
        ifinfomsg(ifi_index=saveas("index")),
        NlaStr(IFLA_IFNAME, saveas("name")),
        NlaNest(IFLA_LINKINFO, NlaStr(IFLA_INFO_KIND, saveas("kind"))),
    )
