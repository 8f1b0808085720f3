""" Text and JSON presentation of nexthops and buckets """

import json
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    TextIO,
    Tuple,
    Union,
)

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *
from .parser_nexthop import BucketAccum, NhAccum
from .rtnames import (
    ENCAP_NAMES,
    GROUP_TYPE_NAMES,
    nh_flags_n2a,
    rtprot_n2a,
    scope_n2a,
)

__all__ = (
    "NhPrinter",
    "bucket_json",
    "bucket_text",
    "nh_json",
    "nh_text",
)

# (json key, json value, text or None for JSON only)
Field = Tuple[str, Any, Optional[str]]


def _num(val: float) -> str:
    return f"{val:g}"


def _nh_fields(
    nh: NhAccum, ifname: Callable[[int], str], details: bool
) -> Iterator[Field]:
    # pylint: disable=too-many-branches
    if nh.deleted:
        yield "deleted", True, "Deleted"
    if nh.id is not None:
        yield "id", nh.id, f"id {nh.id}"
    if nh.group is not None:
        yield (
            "group",
            [
                {"id": m.id} if m.weight == 1 else dict(m._asdict())
                for m in nh.group
            ],
            "group "
            + "/".join(
                str(m.id) if m.weight == 1 else f"{m.id},{m.weight}"
                for m in nh.group
            ),
        )
    if nh.group_type is not None and nh.group_type != NEXTHOP_GRP_TYPE_MPATH:
        name = GROUP_TYPE_NAMES.get(nh.group_type, "<unknown type>")
        yield "type", name, f"type {name}"
    res = {
        key: val
        for key, val in (
            ("buckets", nh.buckets),
            ("idle_timer", nh.idle_timer),
            ("unbalanced_timer", nh.unbalanced_timer),
            ("unbalanced_time", nh.unbalanced_time),
        )
        if val is not None
    }
    if res:
        yield (
            "resilient_args",
            res,
            " ".join(f"{key} {_num(val)}" for key, val in res.items()),
        )
    encap = nh.encap_info
    if encap is not None:
        name = ENCAP_NAMES.get(encap.type, str(encap.type))
        labels = "/".join(str(label) for label in encap.labels)
        yield "encap", name, f"encap {name} {labels}".rstrip()
        if labels:
            yield "dst", labels, None
    if nh.gateway is not None:
        yield "gateway", nh.gateway, f"via {nh.gateway}"
    if nh.oif is not None:
        dev = ifname(nh.oif)
        yield "dev", dev, f"dev {dev}"
    if nh.scope != RT_SCOPE_UNIVERSE or details:
        scope = scope_n2a(nh.scope)
        yield "scope", scope, f"scope {scope}"
    for key, present in (
        ("blackhole", nh.blackhole),
        ("unreachable", nh.unreachable),
        ("prohibit", nh.prohibit),
    ):
        if present:
            yield key, None, key
    if nh.protocol != RTPROT_UNSPEC or details:
        proto = rtprot_n2a(nh.protocol)
        yield "protocol", proto, f"proto {proto}"
    flags = nh_flags_n2a(nh.flags)
    yield "flags", flags, " ".join(flags)
    if nh.fdb:
        yield "fdb", None, "fdb"


def _bucket_fields(bucket: BucketAccum) -> Iterator[Field]:
    if bucket.deleted:
        yield "deleted", True, "Deleted"
    if bucket.id is not None:
        yield "id", bucket.id, f"id {bucket.id}"
    res = {
        key: val
        for key, val in (
            ("index", bucket.index),
            ("idle_time", bucket.idle_time),
            ("nhid", bucket.nhid),
        )
        if val is not None
    }
    if res:
        yield (
            "bucket",
            res,
            " ".join(f"{key} {_num(val)}" for key, val in res.items()),
        )
    flags = nh_flags_n2a(bucket.flags)
    yield "flags", flags, " ".join(flags)


def _text(fields: Iterator[Field]) -> str:
    return " ".join(text for _, _, text in fields if text)


def _json(fields: Iterator[Field]) -> Dict[str, Any]:
    return {key: val for key, val, _ in fields}


def nh_text(
    nh: NhAccum, ifname: Callable[[int], str], details: bool = False
) -> str:
    """One line in the manner of `ip nexthop`"""
    return _text(_nh_fields(nh, ifname, details))


def nh_json(
    nh: NhAccum, ifname: Callable[[int], str], details: bool = False
) -> Dict[str, Any]:
    return _json(_nh_fields(nh, ifname, details))


def bucket_text(bucket: BucketAccum) -> str:
    return _text(_bucket_fields(bucket))


def bucket_json(bucket: BucketAccum) -> Dict[str, Any]:
    return _json(_bucket_fields(bucket))


class NhPrinter:
    """
    Sink for records. Text lines are written as records arrive,
    JSON is written as one array on `close()`. With `stream`, JSON
    is written one object per line instead, for event monitoring.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        out: TextIO,
        ifname: Callable[[int], str],
        as_json: bool = False,
        pretty: bool = False,
        details: bool = False,
        stream: bool = False,
    ) -> None:
        self.out = out
        self.ifname = ifname
        self.as_json = as_json
        self.pretty = pretty
        self.details = details
        self.stream = stream
        self.records: List[Dict[str, Any]] = []

    def add(self, record: Union[NhAccum, BucketAccum]) -> None:
        if isinstance(record, BucketAccum):
            if not self.as_json:
                print(bucket_text(record), file=self.out)
            elif self.stream:
                print(json.dumps(bucket_json(record)), file=self.out)
            else:
                self.records.append(bucket_json(record))
        else:
            if not self.as_json:
                print(
                    nh_text(record, self.ifname, self.details), file=self.out
                )
            elif self.stream:
                print(
                    json.dumps(nh_json(record, self.ifname, self.details)),
                    file=self.out,
                )
            else:
                self.records.append(nh_json(record, self.ifname, self.details))
        self.out.flush()

    def close(self) -> None:
        if self.as_json and not self.stream:
            json.dump(
                self.records, self.out, indent=4 if self.pretty else None
            )
            print(file=self.out)
            self.out.flush()
