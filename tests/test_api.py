""" Nexthop requests over a scripted socket """

from errno import EEXIST, ENOENT
from socket import AF_INET, AF_INET6
from struct import pack
from unittest import TestCase

from netlinknh.api_nexthop import (
    nll_get_nexthop_buckets,
    nll_get_nexthops,
    nll_nh_add,
    nll_nh_bucket_get,
    nll_nh_del,
    nll_nh_get,
    nll_nh_replace,
)
from netlinknh.core import (
    NllCapacityError,
    NllDecodeError,
    NllDumpInterrupted,
    NllError,
    NllInvalidArg,
)
from netlinknh.datatypes import NhGrpMember

# pylint: disable=wildcard-import, unused-wildcard-import
from netlinknh.defs import *
from netlinknh.selector import NhSelector

from . import (
    FakeSocket,
    ack,
    done,
    nhmsg_body,
    nlmsg,
    parse_attrs,
    request_attrs,
    rta,
    split_request,
)


def nh_record(nhid: int, *attrs: bytes, **kwargs: int) -> bytes:
    return nlmsg(
        RTM_NEWNEXTHOP,
        nhmsg_body(rta(NHA_ID, pack("=I", nhid)), *attrs, **kwargs),
        flags=NLM_F_MULTI,
    )


class ModifyTest(TestCase):
    def test_add(self) -> None:
        sk = FakeSocket.scripted([ack()])
        nll_nh_add(id=1, oif=2, gateway="192.0.2.1", sk=sk)
        typ, flags, body = split_request(sk.sent[0])
        self.assertEqual(typ, RTM_NEWNEXTHOP)
        self.assertEqual(
            flags, NLM_F_REQUEST | NLM_F_ACK | NLM_F_CREATE | NLM_F_EXCL
        )
        self.assertEqual(body[0], AF_INET)
        self.assertEqual(
            [typ for typ, _ in parse_attrs(body[8:])],
            [NHA_ID, NHA_OIF, NHA_GATEWAY],
        )

    def test_replace(self) -> None:
        sk = FakeSocket.scripted([ack()])
        nll_nh_replace(id=10, group=[NhGrpMember(1), NhGrpMember(2)], sk=sk)
        typ, flags, _ = split_request(sk.sent[0])
        self.assertEqual(typ, RTM_NEWNEXTHOP)
        self.assertEqual(
            flags, NLM_F_REQUEST | NLM_F_ACK | NLM_F_CREATE | NLM_F_REPLACE
        )

    def test_kernel_rejects(self) -> None:
        sk = FakeSocket.scripted([ack(-EEXIST)])
        with self.assertRaises(NllError) as ctx:
            nll_nh_add(id=1, blackhole=True, sk=sk)
        self.assertEqual(ctx.exception.args[0], -EEXIST)

    def test_one_action(self) -> None:
        sk = FakeSocket.scripted()
        with self.assertRaises(NllInvalidArg):
            nll_nh_add(id=1, sk=sk)
        with self.assertRaises(NllInvalidArg):
            nll_nh_add(id=1, blackhole=True, oif=2, sk=sk)
        with self.assertRaises(NllInvalidArg):
            nll_nh_add(id=1, unreachable=True, group=[NhGrpMember(2)], sk=sk)
        self.assertEqual(sk.sent, [])

    def test_capacity(self) -> None:
        sk = FakeSocket.scripted([ack()])
        group = [NhGrpMember(nhid) for nhid in range(1, 200)]
        with self.assertRaises(NllCapacityError):
            nll_nh_add(id=1000, group=group, sk=sk, msgsize=1024)
        self.assertEqual(sk.sent, [])
        nll_nh_add(id=1000, group=group, sk=sk, msgsize=4096)
        self.assertEqual(len(sk.sent), 1)

    def test_delete(self) -> None:
        sk = FakeSocket.scripted([ack()], [ack(-ENOENT)])
        nll_nh_del(5, sk=sk)
        typ, _, _ = split_request(sk.sent[0])
        self.assertEqual(typ, RTM_DELNEXTHOP)
        self.assertEqual(request_attrs(sk.sent[0]), {NHA_ID: pack("=I", 5)})
        with self.assertRaises(NllError):
            nll_nh_del(6, sk=sk)


class QueryTest(TestCase):
    def test_get(self) -> None:
        sk = FakeSocket.scripted(
            [
                nlmsg(
                    RTM_NEWNEXTHOP,
                    nhmsg_body(
                        rta(NHA_ID, pack("=I", 5)), rta(NHA_BLACKHOLE)
                    ),
                ),
                ack(),
            ]
        )
        nh = nll_nh_get(5, sk=sk)
        self.assertEqual(nh.id, 5)
        self.assertTrue(nh.blackhole)
        typ, flags, _ = split_request(sk.sent[0])
        self.assertEqual(typ, RTM_GETNEXTHOP)
        self.assertEqual(flags, NLM_F_REQUEST | NLM_F_ACK)

    def test_get_missing(self) -> None:
        sk = FakeSocket.scripted([ack(-ENOENT)])
        with self.assertRaises(NllError) as ctx:
            nll_nh_get(5, sk=sk)
        self.assertEqual(ctx.exception.args[0], -ENOENT)

    def test_dump(self) -> None:
        sk = FakeSocket.scripted(
            [
                nh_record(1, rta(NHA_OIF, pack("=I", 2))),
                nh_record(2, rta(NHA_BLACKHOLE)),
                done(),
            ]
        )
        nhs = list(
            nll_get_nexthops(NhSelector(oif=2), family=AF_INET6, sk=sk)
        )
        self.assertEqual([nh.id for nh in nhs], [1, 2])
        typ, flags, body = split_request(sk.sent[0])
        self.assertEqual(typ, RTM_GETNEXTHOP)
        self.assertEqual(flags, NLM_F_REQUEST | NLM_F_DUMP)
        self.assertEqual(body[0], AF_INET6)
        self.assertEqual(request_attrs(sk.sent[0]), {NHA_OIF: pack("=I", 2)})

    def test_dump_protocol_filter(self) -> None:
        sk = FakeSocket.scripted(
            [
                nh_record(1, protocol=RTPROT_STATIC),
                nh_record(2, protocol=RTPROT_ZEBRA),
                nh_record(3, protocol=RTPROT_STATIC),
                done(),
            ]
        )
        nhs = nll_get_nexthops(NhSelector(protocol=RTPROT_STATIC), sk=sk)
        self.assertEqual([nh.id for nh in nhs], [1, 3])
        self.assertEqual(request_attrs(sk.sent[0]), {})

    def test_dump_decode_error(self) -> None:
        sk = FakeSocket.scripted(
            [
                nh_record(1),
                nh_record(2, rta(NHA_GROUP, bytes(3))),
                nh_record(3),
                done(),
            ]
        )
        dump = nll_get_nexthops(sk=sk)
        self.assertEqual(next(dump).id, 1)
        with self.assertRaises(NllDecodeError):
            next(dump)

    def test_dump_bad_message_length(self) -> None:
        for header in (
            pack("=IHHII", 2, RTM_NEWNEXTHOP, NLM_F_MULTI, 1, 0),
            pack("=IHHII", 64, RTM_NEWNEXTHOP, NLM_F_MULTI, 1, 0),
            pack("=IHH", 16, RTM_NEWNEXTHOP, NLM_F_MULTI),
        ):
            with self.subTest(header=header):
                sk = FakeSocket.scripted([nh_record(1), header, done()])
                dump = nll_get_nexthops(sk=sk)
                self.assertEqual(next(dump).id, 1)
                with self.assertRaises(NllDecodeError):
                    next(dump)

    def test_dump_interrupted(self) -> None:
        sk = FakeSocket.scripted(
            [
                nh_record(1),
                nlmsg(
                    RTM_NEWNEXTHOP,
                    nhmsg_body(rta(NHA_ID, pack("=I", 2))),
                    flags=NLM_F_MULTI | NLM_F_DUMP_INTR,
                ),
                done(),
            ]
        )
        seen = []
        with self.assertRaises(NllDumpInterrupted):
            for nh in nll_get_nexthops(sk=sk):
                seen.append(nh.id)
        self.assertEqual(seen, [1, 2])

    def test_bucket_dump(self) -> None:
        bucket = nlmsg(
            RTM_NEWNEXTHOPBUCKET,
            nhmsg_body(
                rta(NHA_ID, pack("=I", 10)),
                rta(
                    NHA_RES_BUCKET | NLA_F_NESTED,
                    rta(NHA_RES_BUCKET_INDEX, pack("=H", 0))
                    + rta(NHA_RES_BUCKET_NH_ID, pack("=I", 7)),
                ),
            ),
            flags=NLM_F_MULTI,
        )
        sk = FakeSocket.scripted([bucket, done()])
        buckets = list(
            nll_get_nexthop_buckets(NhSelector(id=10, nhid=7), sk=sk)
        )
        self.assertEqual(
            [(b.id, b.index, b.nhid) for b in buckets], [(10, 0, 7)]
        )
        typ, _, _ = split_request(sk.sent[0])
        self.assertEqual(typ, RTM_GETNEXTHOPBUCKET)
        attrs = request_attrs(sk.sent[0])
        self.assertEqual(attrs[NHA_ID], pack("=I", 10))
        self.assertEqual(
            attrs[NHA_RES_BUCKET], rta(NHA_RES_BUCKET_NH_ID, pack("=I", 7))
        )

    def test_bucket_get(self) -> None:
        sk = FakeSocket.scripted(
            [
                nlmsg(
                    RTM_NEWNEXTHOPBUCKET,
                    nhmsg_body(
                        rta(NHA_ID, pack("=I", 10)),
                        rta(
                            NHA_RES_BUCKET,
                            rta(NHA_RES_BUCKET_INDEX, pack("=H", 3)),
                        ),
                    ),
                ),
                ack(),
            ]
        )
        bucket = nll_nh_bucket_get(10, 3, sk=sk)
        self.assertEqual((bucket.id, bucket.index), (10, 3))
        _, _, body = split_request(sk.sent[0])
        self.assertEqual(
            parse_attrs(body[8:]),
            [
                (NHA_ID, pack("=I", 10)),
                (
                    NHA_RES_BUCKET | NLA_F_NESTED,
                    rta(NHA_RES_BUCKET_INDEX, pack("=H", 3)),
                ),
            ],
        )
        with self.assertRaises(NllInvalidArg):
            nll_nh_bucket_get(10, 65536, sk=sk)
