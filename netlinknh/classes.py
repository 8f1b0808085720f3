""" Fixed layout netlink structures """

from struct import calcsize, pack, unpack
from typing import Any, Dict, Iterator, Optional, Tuple

__all__ = (
    "NllHdr",
    "ifinfomsg",
    "nexthop_grp",
    "nhmsg",
    "nlmsgerr",
    "nlmsghdr",
    "rtattr",
)


class NllHdr:
    """
    Header of a netlink message or attribute. Keyword arguments are
    either values, used for serialization, or callbacks, used by the
    parser to populate accumulator with the unpacked field value.
    Fields not mentioned serialize as zero.
    """

    FIELDS: Tuple[str, ...] = ()
    PACKFMT: str = "="
    SIZE: int = 0

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.SIZE = calcsize(cls.PACKFMT)

    def __init__(self, **kwargs: Any) -> None:
        unknown = set(kwargs) - set(self.FIELDS)
        if unknown:
            raise TypeError(
                f"{self.__class__.__name__} has no fields {sorted(unknown)}"
            )
        self.kwargs = kwargs

    def __iter__(self) -> Iterator[str]:
        return iter(self.FIELDS)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            + ", ".join(f"{k}={v!r}" for k, v in self.kwargs.items())
            + ")"
        )

    def items(self) -> Iterator[Tuple[str, Optional[Any]]]:
        return ((field, self.kwargs.get(field)) for field in self.FIELDS)

    def __bytes__(self) -> bytes:
        return pack(
            self.PACKFMT,
            *(
                0 if val is None or callable(val) else val
                for _, val in self.items()
            ),
        )

    @classmethod
    def unpack(cls, data: bytes) -> Dict[str, int]:
        """Return dict of field values from the head of `data`"""
        return dict(zip(cls.FIELDS, unpack(cls.PACKFMT, data[: cls.SIZE])))


class nlmsghdr(NllHdr):  # pylint: disable=invalid-name
    FIELDS = (
        "nlmsg_len",
        "nlmsg_type",
        "nlmsg_flags",
        "nlmsg_seq",
        "nlmsg_pid",
    )
    PACKFMT = "=IHHII"


class nlmsgerr(NllHdr):  # pylint: disable=invalid-name
    FIELDS = (
        "error",
        "nlmsg_len",
        "nlmsg_type",
        "nlmsg_flags",
        "nlmsg_seq",
        "nlmsg_pid",
    )
    PACKFMT = "=iIHHII"


class rtattr(NllHdr):  # pylint: disable=invalid-name
    FIELDS = ("rta_len", "rta_type")
    PACKFMT = "=HH"


class nhmsg(NllHdr):  # pylint: disable=invalid-name
    FIELDS = ("nh_family", "nh_scope", "nh_protocol", "resvd", "nh_flags")
    PACKFMT = "=BBBBI"


class nexthop_grp(NllHdr):  # pylint: disable=invalid-name
    FIELDS = ("id", "weight", "resvd1", "resvd2")
    PACKFMT = "=IBBH"


class ifinfomsg(NllHdr):  # pylint: disable=invalid-name
    FIELDS = (
        "ifi_family",
        "ifi_type",
        "ifi_index",
        "ifi_flags",
        "ifi_change",
    )
    PACKFMT = "=BxHiII"
