""" Interface lookups by name and by index """

from errno import ENODEV
from socket import socket
from typing import Dict, Optional

from .classes import ifinfomsg
from .core import NlaStr, NlaStruct, NllError, nll_transact

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *
from .parser_link import LinkAccum, link_parser

__all__ = ("LinkResolver", "nll_link_get")


def nll_link_get(
    ifindex: int = 0,
    name: Optional[str] = None,
    sk: Optional[socket] = None,
) -> Optional[LinkAccum]:
    """Find interface by index or by name, None if there is no such"""
    try:
        msg = nll_transact(
            RTM_GETLINK,
            RTM_NEWLINK,
            NlaStruct(ifinfomsg(ifi_index=ifindex), NlaStr(IFLA_IFNAME, name)),
            sk=sk,
        )
    except NllError as e:
        if e.args[0] == -ENODEV:
            return None
        raise
    if not msg:
        return None
    return link_parser().parse(LinkAccum(), msg)[0]


class LinkResolver:
    """Cached name <-> index translation"""

    def __init__(self, sk: Optional[socket] = None) -> None:
        self.sk = sk
        self._by_name: Dict[str, Optional[LinkAccum]] = {}
        self._by_index: Dict[int, Optional[LinkAccum]] = {}

    def lookup(
        self, ifindex: int = 0, name: Optional[str] = None
    ) -> Optional[LinkAccum]:
        return nll_link_get(ifindex=ifindex, name=name, sk=self.sk)

    def _remember(self, link: Optional[LinkAccum]) -> None:
        if link is not None:
            self._by_index[link.index] = link
            if link.name is not None:
                self._by_name[link.name] = link

    def by_name(self, name: str) -> Optional[LinkAccum]:
        if name not in self._by_name:
            link = self.lookup(name=name)
            self._by_name[name] = link
            self._remember(link)
        return self._by_name[name]

    def by_index(self, ifindex: int) -> Optional[LinkAccum]:
        if ifindex not in self._by_index:
            link = self.lookup(ifindex=ifindex)
            self._by_index[ifindex] = link
            self._remember(link)
        return self._by_index[ifindex]

    def ifindex(self, name: str) -> Optional[int]:
        link = self.by_name(name)
        return None if link is None else link.index

    def ifname(self, ifindex: int) -> str:
        link = self.by_index(ifindex)
        if link is None or link.name is None:
            return f"if{ifindex}"
        return link.name

    def is_vrf(self, name: str) -> bool:
        link = self.by_name(name)
        return link is not None and link.kind == "vrf"
