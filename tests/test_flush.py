""" Bulk deletion ordering and failure handling """

from errno import EBUSY
from struct import pack, unpack
from typing import Iterable, List, Sequence, Set, Tuple
from unittest import TestCase

from netlinknh.core import NllDecodeError, NllError
from netlinknh.flush import NhFlushSession, NhFlushState, nll_nh_flush

# pylint: disable=wildcard-import, unused-wildcard-import
from netlinknh.defs import *
from netlinknh.selector import NhSelector

from . import (
    FakeSocket,
    ack,
    done,
    nhmsg_body,
    nlmsg,
    request_attrs,
    rta,
    split_request,
)


def record(nhid: int, *attrs: bytes, flags: int = NLM_F_MULTI) -> bytes:
    return nlmsg(
        RTM_NEWNEXTHOP,
        nhmsg_body(rta(NHA_ID, pack("=I", nhid)), *attrs),
        flags=flags,
    )


class FakeKernel:
    """
    Nexthop table behind a pair of fake sockets: dumps list the
    current content, groups only when asked, deletes remove entries.
    A nexthop that is a member of some group cannot be deleted.
    """

    def __init__(self, singles: Sequence[int], groups: Sequence[int]) -> None:
        self.singles: Set[int] = set(singles)
        self.groups: Set[int] = set(groups)
        self.log: List[Tuple[str, bytes]] = []
        self.sk = FakeSocket(self.dump, "dump", self.log)
        self.del_sk = FakeSocket(self.delete, "del", self.log)

    def dump(self, request: bytes) -> Iterable[bytes]:
        if NHA_GROUPS in request_attrs(request):
            ids = sorted(self.groups)
        else:
            ids = sorted(self.singles | self.groups)
        return [record(nhid) for nhid in ids] + [done()]

    def delete(self, request: bytes) -> Iterable[bytes]:
        (nhid,) = unpack("=I", request_attrs(request)[NHA_ID])
        if nhid in self.groups:
            self.groups.discard(nhid)
        elif nhid in self.singles and not self.groups:
            self.singles.discard(nhid)
        else:
            return [ack(-EBUSY)]
        return [ack()]

    def deleted(self) -> List[int]:
        return [
            unpack("=I", request_attrs(data)[NHA_ID])[0]
            for name, data in self.log
            if name == "del"
        ]

    def dumps(self) -> List[bool]:
        """For every dump request: whether it asked for groups only"""
        return [
            NHA_GROUPS in request_attrs(data)
            for name, data in self.log
            if name == "dump"
        ]


class FlushTest(TestCase):
    def test_groups_first(self) -> None:
        kernel = FakeKernel(singles=[1, 2, 3], groups=[10, 11])
        session = nll_nh_flush(sk=kernel.sk, del_sk=kernel.del_sk)
        self.assertEqual(kernel.dumps(), [True, False])
        self.assertEqual(kernel.deleted(), [10, 11, 1, 2, 3])
        self.assertEqual(session.flushed, 5)
        self.assertIs(session.state, NhFlushState.DONE)
        self.assertIsNone(session.error)
        self.assertEqual(str(session), "Flushed 5 nexthops")
        self.assertEqual(kernel.singles | kernel.groups, set())

    def test_nothing(self) -> None:
        kernel = FakeKernel(singles=[], groups=[])
        session = nll_nh_flush(sk=kernel.sk, del_sk=kernel.del_sk)
        self.assertEqual(session.flushed, 0)
        self.assertEqual(str(session), "Nothing to flush")
        self.assertEqual(kernel.dumps(), [True, False])

    def test_selector_single_pass(self) -> None:
        kernel = FakeKernel(singles=[1, 2], groups=[])
        session = NhFlushSession(NhSelector(oif=2)).run(
            kernel.sk, kernel.del_sk
        )
        self.assertEqual(kernel.dumps(), [False])
        self.assertEqual(
            request_attrs(kernel.sk.sent[0]), {NHA_OIF: pack("=I", 2)}
        )
        self.assertEqual(session.flushed, 2)

    def test_failed_deletes_skipped(self) -> None:
        kernel = FakeKernel(singles=[1, 2, 3], groups=[10])
        with self.assertLogs("netlinknh.flush", "DEBUG") as logs:
            session = nll_nh_flush(
                NhSelector(protocol=RTPROT_UNSPEC),
                sk=kernel.sk,
                del_sk=kernel.del_sk,
            )
        self.assertEqual(kernel.dumps(), [False])
        self.assertEqual(kernel.deleted(), [1, 2, 3, 10])
        self.assertEqual(session.flushed, 1)
        self.assertIsNone(session.error)
        self.assertTrue(
            any("nexthop 1 not flushed" in line for line in logs.output)
        )

    def test_decode_error_stops(self) -> None:
        replies = [
            record(1),
            record(2),
            record(3, rta(NHA_GATEWAY, b"\x01\x02")),
            record(4),
            done(),
        ]
        sk = FakeSocket.scripted(replies)
        del_sk = FakeSocket(lambda _: [ack()])
        session = nll_nh_flush(NhSelector(oif=2), sk=sk, del_sk=del_sk)
        self.assertEqual(session.flushed, 2)
        self.assertIsInstance(session.error, NllDecodeError)
        self.assertIs(session.state, NhFlushState.DONE)
        self.assertEqual(len(sk.sent), 1)

    def test_dump_error_stops_before_singles(self) -> None:
        sk = FakeSocket.scripted([ack(-EBUSY)], [done()])
        del_sk = FakeSocket(lambda _: [ack()])
        session = nll_nh_flush(sk=sk, del_sk=del_sk)
        self.assertIsInstance(session.error, NllError)
        self.assertEqual(len(sk.sent), 1)
        self.assertEqual(del_sk.sent, [])

    def test_interrupted_dump_continues(self) -> None:
        sk = FakeSocket.scripted(
            [record(10, flags=NLM_F_MULTI | NLM_F_DUMP_INTR), done()],
            [record(1), done()],
        )
        del_sk = FakeSocket(lambda _: [ack()])
        with self.assertLogs("netlinknh.flush", "WARNING") as logs:
            session = nll_nh_flush(sk=sk, del_sk=del_sk)
        self.assertEqual(session.flushed, 2)
        self.assertIsNone(session.error)
        self.assertEqual(len(sk.sent), 2)
        self.assertIn("Dump was interrupted", logs.output[0])

    def test_delete_requests(self) -> None:
        kernel = FakeKernel(singles=[7], groups=[])
        nll_nh_flush(NhSelector(master=3), sk=kernel.sk, del_sk=kernel.del_sk)
        typ, _, _ = split_request(kernel.del_sk.sent[0])
        self.assertEqual(typ, RTM_DELNEXTHOP)
