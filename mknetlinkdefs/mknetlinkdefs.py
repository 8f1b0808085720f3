"""
Build python definitions from netlink header definitions

Include build dependency on `linux-libc-dev` package

Example from https://stackoverflow.com/questions/58732872/can-python-load-definitions-from-a-c-header-file

Usage:
    python3 mknetlinkdefs/mknetlinkdefs.py > netlinknh/defs.py

Both `#define` constants and `enum` members are collected, their
values computed from C integer expressions that may refer to names
defined earlier or later, in the same header or in a preceding one.
Function-like macros and anything that is not an integer expression
are skipped.
"""

from operator import add, and_, floordiv, lshift, mul, or_, rshift, sub
from re import match
from sys import stdout
from typing import IO, Any, Dict, Iterator, List, Sequence, Tuple, Union
from typing import Optional as OptionalT

from pyparsing import (
    Group,
    LineStart,
    Literal,
    OpAssoc,
    Optional,
    ParseBaseException,
    ParserElement,
    Regex,
    StringEnd,
    Suppress,
    common,
    cpp_style_comment,
    infix_notation,
    one_of,
    rest_of_line,
)

SRC = [
    "/usr/include/linux/netlink.h",
    "/usr/include/linux/rtnetlink.h",
    "/usr/include/linux/if_link.h",
    "/usr/include/linux/nexthop.h",
    "/usr/include/linux/lwtunnel.h",
    "/usr/include/linux/mpls_iptunnel.h",
    "/usr/include/linux/mpls.h",
]

EXCLUDE = "^_"
WANTED = (
    "^(NLM_F_|NLMSG_|NETLINK_(ADD|DROP)_MEMBERSHIP$|NETLINK_EXT_ACK$"
    "|NETLINK_GET_STRICT_CHK$|NLA_(F_|TYPE_MASK$|ALIGNTO$)"
    "|RTM_(NEW|DEL|GET|SET)(LINK|NEXTHOP|NEXTHOPBUCKET)$|RTM_F_"
    "|RTPROT_|RT_SCOPE_|RTNH_F_|RTNLGRP_(NONE|LINK|NEXTHOP)$"
    "|IFLA_(UNSPEC|ADDRESS|BROADCAST|IFNAME|MTU|LINK|MASTER|LINKINFO)$"
    "|IFLA_INFO_(UNSPEC|KIND|DATA)$|NEXTHOP_GRP_TYPE_"
    "|NHA_(?!OP_FLAG|GROUP_STATS)"
    "|LWTUNNEL_ENCAP_|MPLS_IPTUNNEL_(UNSPEC|DST|TTL)$|MPLS_LS_)"
)

# Not in the uapi headers yet, iproute2 carries them on its own
EXTRA = {
    "/usr/include/linux/nexthop.h": [
        ("NHA_UNREACHABLE", "NHA_HW_STATS_USED + 1"),
        ("NHA_PROHIBIT", "NHA_UNREACHABLE + 1"),
    ],
}

Expr = Union[int, str, Tuple[Any, ...]]

ParserElement.enable_packrat()


def _c_int(text: str) -> int:
    digits = text.rstrip("uUlL")
    if digits[:2].lower() == "0x":
        return int(digits, 16)
    if len(digits) > 1 and digits.startswith("0"):
        return int(digits, 8)
    return int(digits)


# syntax we don't want to see in the final parse tree
LBRACE, RBRACE, EQ, COMMA = Suppress.using_each("{}=,")
_enum = Suppress("enum")
c_integer = Regex(r"(0[xX][0-9a-fA-F]+|\d+)[uUlL]*").set_parse_action(
    lambda t: _c_int(t[0])
)
arith_expr = infix_notation(
    c_integer | common.identifier,
    [
        (one_of("- ~"), 1, OpAssoc.RIGHT),
        (one_of("* /"), 2, OpAssoc.LEFT),
        (one_of("+ -"), 2, OpAssoc.LEFT),
        (one_of("<< >>"), 2, OpAssoc.LEFT),
        (Literal("&"), 2, OpAssoc.LEFT),
        (Literal("|"), 2, OpAssoc.LEFT),
    ],
)
enumValue = Group(
    common.identifier("name") + Optional(EQ + Group(arith_expr)("value"))
)
enumList = Group(enumValue + (COMMA + enumValue)[...] + Optional(COMMA))
enum = (
    _enum
    + Optional(common.identifier("ename"))
    + LBRACE
    + enumList("names")
    + RBRACE
)
enum.ignore(cpp_style_comment)

define = (
    LineStart()
    + Suppress("#define")
    + common.identifier("name")
    + Optional(Literal("(").leave_whitespace()("function"))
    + rest_of_line("value")
)
define.ignore(cpp_style_comment)

_BINOPS = {
    "+": add,
    "-": sub,
    "*": mul,
    "/": floordiv,
    "<<": lshift,
    ">>": rshift,
    "&": and_,
    "|": or_,
}


def to_tree(tokens: Any) -> Expr:
    """Turn parse results into nested tuples: unary (op, x),
    binary (x, op, y, op, z...)"""
    if isinstance(tokens, (int, str)):
        return tokens
    items = list(tokens)
    if len(items) == 1:
        return to_tree(items[0])
    if len(items) == 2:
        return (items[0], to_tree(items[1]))
    tree: List[Expr] = [to_tree(items[0])]
    for op, operand in zip(items[1::2], items[2::2]):
        tree.extend((op, to_tree(operand)))
    return tuple(tree)


def parse_expr(text: str) -> OptionalT[Expr]:
    """Integer expression tree, or None for anything else"""
    try:
        return to_tree(
            (arith_expr + StringEnd()).parse_string(
                cpp_style_comment.suppress().transform_string(text).strip()
            )[0]
        )
    except ParseBaseException:
        return None


def evaluate(expr: Expr, env: Dict[str, int]) -> OptionalT[int]:
    """Value of the expression, None if some name is not known yet"""
    if isinstance(expr, int):
        return expr
    if isinstance(expr, str):
        return env.get(expr)
    if len(expr) == 2:
        op, arg = expr
        val = evaluate(arg, env)
        if val is None:
            return None
        return -val if op == "-" else ~val
    acc = evaluate(expr[0], env)
    for op, arg in zip(expr[1::2], expr[2::2]):
        val = evaluate(arg, env)
        if acc is None or val is None:
            return None
        acc = _BINOPS[op](acc, val)
    return acc


def split_source(text: str) -> Tuple[str, str]:
    """Separate `#define` lines, with continuations joined, from the rest"""
    defs: List[str] = []
    rest: List[str] = []
    line = ""
    for rline in text.splitlines(keepends=True):
        line += rline
        if line.endswith("\\\n"):
            line = line[: -len("\\\n")]
            continue
        (defs if line.lstrip().startswith("#define") else rest).append(line)
        line = ""
    return "".join(defs), "".join(rest)


def scan_defines(text: str) -> Iterator[Tuple[str, Expr]]:
    for item, _, _ in define.scan_string(text):
        if item.get("function"):
            continue
        expr = parse_expr(item.value)
        if expr is not None:
            yield item.name, expr


def scan_enums(text: str) -> Iterator[Tuple[str, Expr]]:
    """Enum members, implicit values expressed as `previous + 1`"""
    for item, _, _ in enum.scan_string(text):
        prev: OptionalT[str] = None
        for entry in item.names:
            if "value" in entry:
                expr = to_tree(entry.value)
            elif prev is None:
                expr = 0
            else:
                expr = (prev, "+", 1)
            prev = entry.name
            yield entry.name, expr


def resolve(entries: Sequence[Tuple[str, Expr]]) -> Dict[str, int]:
    """
    Compute values in any order of dependency. First definition
    that can be computed wins, the dict keeps the source order.
    """
    env: Dict[str, int] = {}
    pending = list(entries)
    progress = True
    while pending and progress:
        progress = False
        still = []
        for name, expr in pending:
            if name in env:
                continue
            val = evaluate(expr, env)
            if val is None:
                still.append((name, expr))
            else:
                env[name] = val
                progress = True
        pending = still
    order: Dict[str, int] = {}
    for idx, (name, _) in enumerate(entries):
        order.setdefault(name, idx)
    return dict(sorted(env.items(), key=lambda kv: order[kv[0]]))


def collect(
    sources: Sequence[Tuple[str, str]]
) -> List[Tuple[str, str, List[Tuple[str, Expr]]]]:
    """Per source (name, text): (name, kind, entries) blocks"""
    blocks = []
    for srcname, text in sources:
        defs, rest = split_source(text)
        blocks.append((srcname, "define", list(scan_defines(defs))))
        enums = list(scan_enums(rest))
        for name, value in EXTRA.get(srcname, ()):
            expr = parse_expr(value)
            assert expr is not None, value
            enums.append((name, expr))
        blocks.append((srcname, "enum", enums))
    return blocks


def generate(sources: Sequence[Tuple[str, str]], out: IO[str]) -> None:
    blocks = collect(sources)
    env = resolve([entry for _, _, entries in blocks for entry in entries])
    print(
        '""" Netlink definitions, generated by mknetlinkdefs.'
        ' Do not edit. """',
        file=out,
    )
    print("\n# pylint: disable=invalid-name", file=out)
    seen = set()
    for srcname, kind, entries in blocks:
        names = [
            name
            for name, _ in entries
            if name in env
            and name not in seen
            and not match(EXCLUDE, name)
            and match(WANTED, name)
        ]
        if not names:
            continue
        print(f"\n# {kind} {srcname}", file=out)
        for name in dict.fromkeys(names):
            seen.add(name)
            print(f"{name} = {env[name]}", file=out)


if __name__ == "__main__":
    texts = []
    for infn in SRC:
        with open(infn, encoding="ascii") as inp:
            texts.append((infn, inp.read()))
    generate(texts, stdout)
