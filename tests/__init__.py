""" Helpers for netlinknh unit tests: message builders and a fake socket """

from socket import AF_INET
from struct import pack, unpack
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
)

from netlinknh.api_link import LinkResolver
from netlinknh.defs import (
    NLA_TYPE_MASK,
    NLM_F_MULTI,
    NLMSG_DONE,
    NLMSG_ERROR,
)
from netlinknh.parser_link import LinkAccum


def no_less_than(minimum: str) -> Callable[[str], bool]:
    """Version comparator: true when the version is at least `minimum`"""

    def _numbers(version: str) -> List[int]:
        return [int(x) for x in version.split(".") if x.isdigit()]

    def _cmp(version: str) -> bool:
        return _numbers(version) >= _numbers(minimum)

    return _cmp


def rta(typ: int, payload: bytes = b"") -> bytes:
    """Attribute with header and padding"""
    length = 4 + len(payload)
    return pack("=HH", length, typ) + payload + b"\0" * (-length % 4)


def nhmsg_body(
    *attrs: bytes,
    family: int = AF_INET,
    scope: int = 0,
    protocol: int = 0,
    flags: int = 0,
) -> bytes:
    return pack("=BBBBI", family, scope, protocol, 0, flags) + b"".join(attrs)


def nlmsg(typ: int, body: bytes, flags: int = 0, seq: int = 1) -> bytes:
    return pack("=IHHII", 16 + len(body), typ, flags, seq, 0) + body


def done() -> bytes:
    return nlmsg(NLMSG_DONE, pack("=i", 0), flags=NLM_F_MULTI)


def ack(code: int = 0) -> bytes:
    return nlmsg(NLMSG_ERROR, pack("=i", code) + bytes(16))


def split_request(data: bytes) -> Tuple[int, int, bytes]:
    """(type, flags, body) of a request"""
    length, typ, flags, _, _ = unpack("=IHHII", data[:16])
    return typ, flags, data[16:length]


def parse_attrs(data: bytes) -> List[Tuple[int, bytes]]:
    """(type, payload) list, nested flag kept in the type"""
    attrs = []
    while data:
        length, typ = unpack("=HH", data[:4])
        attrs.append((typ, data[4:length]))
        data = data[(length + 3) & ~3 :]
    return attrs


def request_attrs(data: bytes) -> Dict[int, bytes]:
    """Attributes of a nexthop request, keyed by masked type"""
    _, _, body = split_request(data)
    return {typ & NLA_TYPE_MASK: val for typ, val in parse_attrs(body[8:])}


class FakeSocket:
    """
    Stands for a netlink socket. Each `sendto` queues the datagrams
    returned by `responder(request)`, `recv` hands them out one by one
    and then returns empty bytes. Requests are recorded in `sent` and,
    tagged with `name`, in the shared `log`.
    """

    def __init__(
        self,
        responder: Callable[[bytes], Iterable[bytes]],
        name: str = "sk",
        log: Optional[List[Tuple[str, bytes]]] = None,
    ) -> None:
        self.responder = responder
        self.name = name
        self.log = log if log is not None else []
        self.sent: List[bytes] = []
        self.pending: List[bytes] = []

    @classmethod
    def scripted(cls, *replies: Sequence[bytes]) -> "FakeSocket":
        """Socket answering n-th request with n-th sequence of datagrams"""
        script = list(replies)
        return cls(lambda _: script.pop(0) if script else ())

    def sendto(self, data: bytes, _addr: Any) -> int:
        self.sent.append(bytes(data))
        self.log.append((self.name, bytes(data)))
        self.pending.extend(self.responder(bytes(data)))
        return len(data)

    def recv(self, _size: int) -> bytes:
        return self.pending.pop(0) if self.pending else b""

    def setsockopt(self, *_: Any) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "FakeSocket":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()


class FakeLinks(LinkResolver):
    """Interface table that does not ask the kernel"""

    LINKS = {
        1: ("lo", None),
        2: ("eth0", None),
        3: ("blue", "vrf"),
        4: ("br0", "bridge"),
    }

    def lookup(
        self, ifindex: int = 0, name: Optional[str] = None
    ) -> Optional[LinkAccum]:
        for index, (lname, kind) in self.LINKS.items():
            if index == ifindex or lname == name:
                link = LinkAccum()
                link.index = index
                link.name = lname
                link.kind = kind
                return link
        return None
