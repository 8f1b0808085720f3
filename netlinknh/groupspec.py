""" Parser for textual nexthop group descriptors """

from typing import List

from .core import NllInvalidArg
from .datatypes import MAX_U32, NH_WEIGHT_MAX, NhGrpMember

__all__ = ("parse_group_spec", "parse_unsigned")


def parse_unsigned(
    token: str, what: str = "id", maximum: int = MAX_U32
) -> int:
    """Unsigned integer in decimal, hex (0x) or octal (0) notation"""
    try:
        if "_" in token:
            raise ValueError(token)
        val = int(token, 0) if not token.startswith("0") else _int0(token)
    except ValueError as e:
        raise NllInvalidArg(f"invalid {what} value", token) from e
    if not 0 <= val <= maximum:
        raise NllInvalidArg(f"invalid {what} value", token)
    return val


def _int0(token: str) -> int:
    # strtoul() base 0 treats leading zero as octal
    if token[:2].lower() == "0x":
        return int(token, 16)
    return int(token, 8) if len(token) > 1 else 0


def parse_group_spec(spec: str) -> List[NhGrpMember]:
    """
    Parse `id[,weight][/id[,weight]...]` into ordered list of members.
    Weight defaults to 1 and must be in 1..256.
    """
    if not spec:
        raise NllInvalidArg('"group" value is invalid', spec)
    members = []
    for member in spec.split("/"):
        nhid, sep, weight = member.partition(",")
        if not nhid:
            raise NllInvalidArg('"group" value is invalid', spec)
        if sep:
            try:
                wval = parse_unsigned(weight, "weight")
            except NllInvalidArg as e:
                raise NllInvalidArg('"weight" is invalid', weight) from e
            if not 1 <= wval <= NH_WEIGHT_MAX:
                raise NllInvalidArg('"weight" is invalid', weight)
            members.append(NhGrpMember(parse_unsigned(nhid), wval))
        else:
            members.append(NhGrpMember(parse_unsigned(nhid)))
    return members
