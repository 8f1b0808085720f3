""" Bulk deletion of nexthop objects """

from enum import Enum
from logging import getLogger
from socket import AF_NETLINK, AF_UNSPEC, NETLINK_ROUTE, SOCK_RAW, socket
from typing import Optional

from .api_nexthop import nll_get_nexthops, nll_nh_del
from .core import NLL_MSGSIZE, NllDumpInterrupted, NllError
from .selector import NhSelector

__all__ = ("NhFlushSession", "NhFlushState", "nll_nh_flush")

log = getLogger(__name__)


class NhFlushState(Enum):
    IDLE = "idle"
    PURGE_GROUPS = "purge groups"
    PURGE_SINGLES = "purge singles"
    SINGLE = "single pass"
    DONE = "done"


class NhFlushSession:
    """
    One flush invocation. Flushing everything takes two passes, groups
    first and then the rest: a nexthop that is a member of some group
    cannot be deleted. With any selection criteria there is a single
    pass.

    Records are deleted while the dump is still being read, so deletes
    go through a separate socket.
    """

    def __init__(
        self,
        selector: NhSelector = NhSelector(),
        family: int = AF_UNSPEC,
        msgsize: int = NLL_MSGSIZE,
    ) -> None:
        self.selector = selector
        self.family = family
        self.msgsize = msgsize
        self.state = NhFlushState.IDLE
        self.flushed = 0
        self.error: Optional[NllError] = None

    def __str__(self) -> str:
        if not self.flushed:
            return "Nothing to flush"
        return f"Flushed {self.flushed} nexthops"

    def _pass_selector(self) -> NhSelector:
        if self.state is NhFlushState.PURGE_GROUPS:
            return self.selector.with_groups(True)
        if self.state is NhFlushState.PURGE_SINGLES:
            return self.selector.with_groups(False)
        return self.selector

    def _next_state(self) -> NhFlushState:
        if self.error is None and self.state is NhFlushState.PURGE_GROUPS:
            return NhFlushState.PURGE_SINGLES
        return NhFlushState.DONE

    def _pass(self, sk: Optional[socket], del_sk: socket) -> None:
        try:
            for nh in nll_get_nexthops(
                self._pass_selector(),
                family=self.family,
                sk=sk,
                msgsize=self.msgsize,
            ):
                if nh.id is None:
                    continue
                try:
                    nll_nh_del(nh.id, sk=del_sk, msgsize=self.msgsize)
                except NllError as e:
                    log.debug("nexthop %d not flushed: %s", nh.id, e)
                    continue
                self.flushed += 1
        except NllDumpInterrupted:
            log.warning("Dump was interrupted and may be inconsistent.")
        except NllError as e:
            self.error = e

    def run(
        self, sk: Optional[socket] = None, del_sk: Optional[socket] = None
    ) -> "NhFlushSession":
        """
        Run the passes. `sk` carries the dumps, `del_sk` the deletes,
        each is opened for the duration of the run when not given.
        """
        if del_sk is None:
            with socket(AF_NETLINK, SOCK_RAW, NETLINK_ROUTE) as owns:
                return self.run(sk, owns)
        self.state = (
            NhFlushState.PURGE_GROUPS
            if self.selector.is_all()
            else NhFlushState.SINGLE
        )
        while self.state is not NhFlushState.DONE:
            log.debug("flush pass: %s", self.state.value)
            self._pass(sk, del_sk)
            self.state = self._next_state()
        return self


def nll_nh_flush(
    selector: NhSelector = NhSelector(),
    family: int = AF_UNSPEC,
    sk: Optional[socket] = None,
    del_sk: Optional[socket] = None,
    msgsize: int = NLL_MSGSIZE,
) -> NhFlushSession:
    """Delete all nexthops matching the selector"""
    return NhFlushSession(selector, family=family, msgsize=msgsize).run(
        sk, del_sk
    )
