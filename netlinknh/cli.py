""" Command line interface in the manner of `ip nexthop` """

import sys
from argparse import REMAINDER, ArgumentParser
from enum import Enum
from ipaddress import ip_address
from logging import DEBUG, INFO, WARNING, basicConfig, getLogger
from socket import AF_INET, AF_INET6, AF_UNSPEC
from typing import (
    Any,
    Callable,
    Dict,
    NamedTuple,
    Optional,
    Sequence,
    TextIO,
    Tuple,
)

from .api_link import LinkResolver
from .api_mon import nll_nh_event_listener, nll_nh_events
from .api_nexthop import (
    nll_get_nexthop_buckets,
    nll_get_nexthops,
    nll_nh_add,
    nll_nh_bucket_get,
    nll_nh_del,
    nll_nh_get,
    nll_nh_replace,
)
from .core import (
    NLL_MSGSIZE,
    NllDecodeError,
    NllDumpInterrupted,
    NllError,
    NllException,
    NllInvalidArg,
)
from .datatypes import NhEncap, NhResArgs

# pylint: disable=wildcard-import, unused-wildcard-import
from .defs import *
from .flush import nll_nh_flush
from .groupspec import parse_group_spec, parse_unsigned
from .output import NhPrinter
from .rtnames import rtprot_a2n
from .selector import NhSelector

__all__ = ("NhOptions", "NhVerb", "main", "run")

PROG = "nllnh"

USAGE = f"""\
Usage: {PROG} {{ list | flush }} [ protocol ID ] SELECTOR
       {PROG} {{ add | replace }} id ID NH [ protocol ID ]
       {PROG} {{ get | del }} id ID
       {PROG} bucket list BUCKET_SELECTOR
       {PROG} bucket get id ID index INDEX
       {PROG} monitor
SELECTOR := [ id ID ] [ dev DEV ] [ vrf NAME ] [ master DEV ]
            [ groups ] [ fdb ]
BUCKET_SELECTOR := SELECTOR | [ nhid ID ]
NH := {{ blackhole | unreachable | prohibit | [ via ADDRESS ]
        [ dev DEV ] [ onlink ] [ encap ENCAPTYPE ENCAPHDR ] |
        group GROUP [ fdb ] [ type TYPE [ TYPE_ARGS ] ] }}
GROUP := [ <id[,weight]>/<id[,weight]>/... ]
TYPE := {{ mpath | resilient }}
TYPE_ARGS := [ RESILIENT_ARGS ]
RESILIENT_ARGS := [ buckets BUCKETS ] [ idle_timer IDLE ]
                  [ unbalanced_timer UNBALANCED ]
ENCAPTYPE := [ mpls ]
ENCAPHDR := [ MPLSLABEL ]"""

log = getLogger("netlinknh")

MAX_U16 = 2**16 - 1


class NhUsage(NllException):
    """Command line cannot be acted upon, synopsis should be shown"""


class NhOptions(NamedTuple):
    family: int = AF_UNSPEC
    json: bool = False
    pretty: bool = False
    details: bool = False
    verbose: int = 0
    msgsize: int = NLL_MSGSIZE


class NhVerb(Enum):
    ADD = "add"
    REPLACE = "replace"
    DELETE = "delete"
    LIST = "list"
    GET = "get"
    FLUSH = "flush"
    BUCKET_LIST = "bucket list"
    BUCKET_GET = "bucket get"
    MONITOR = "monitor"
    HELP = "help"


# First keyword that the word is a prefix of wins
_VERBS: Tuple[Tuple[str, NhVerb], ...] = (
    ("add", NhVerb.ADD),
    ("replace", NhVerb.REPLACE),
    ("delete", NhVerb.DELETE),
    ("list", NhVerb.LIST),
    ("show", NhVerb.LIST),
    ("lst", NhVerb.LIST),
    ("get", NhVerb.GET),
    ("flush", NhVerb.FLUSH),
    ("bucket", NhVerb.BUCKET_LIST),
    ("monitor", NhVerb.MONITOR),
    ("help", NhVerb.HELP),
)

_BUCKET_VERBS: Tuple[Tuple[str, NhVerb], ...] = (
    ("list", NhVerb.BUCKET_LIST),
    ("show", NhVerb.BUCKET_LIST),
    ("lst", NhVerb.BUCKET_LIST),
    ("get", NhVerb.BUCKET_GET),
    ("help", NhVerb.HELP),
)


def matches(word: str, keyword: str) -> bool:
    """Word is a non-empty abbreviation of the keyword"""
    return bool(word) and keyword.startswith(word)


class Words:
    """Cursor over the command words"""

    def __init__(self, words: Sequence[str]) -> None:
        self.words = list(words)
        self.pos = 0

    def __bool__(self) -> bool:
        return self.pos < len(self.words)

    def peek(self) -> str:
        return self.words[self.pos]

    def pop(self) -> str:
        word = self.words[self.pos]
        self.pos += 1
        return word

    def pop_arg(self, keyword: str) -> str:
        """Value following the keyword"""
        if not self:
            raise NhUsage(
                f'Command line is not complete after "{keyword}".'
                f' Try "{PROG} help".'
            )
        return self.pop()


def resolve_verb(words: Sequence[str]) -> Tuple[NhVerb, Words]:
    """Find the verb and return it with the remaining words"""
    if not words:
        return NhVerb.LIST, Words(())
    head, *rest = words
    for keyword, verb in _VERBS:
        if matches(head, keyword):
            break
    else:
        raise NhUsage(f'Command "{head}" is unknown, try "{PROG} help".')
    if verb is not NhVerb.BUCKET_LIST or not rest:
        return verb, Words(rest)
    head, *rest = rest
    for keyword, verb in _BUCKET_VERBS:
        if matches(head, keyword):
            return verb, Words(rest)
    raise NhUsage(f'Command "{head}" is unknown, try "{PROG} help".')


def _parse_id(word: str) -> int:
    return parse_unsigned(word, "id")


def _device(links: LinkResolver, name: str) -> int:
    try:
        ifindex = links.ifindex(name)
    except NllError as e:
        log.debug("Lookup of %s failed: %s", name, e)
        ifindex = None
    if not ifindex:
        raise NllInvalidArg("Device does not exist", name)
    return ifindex


def _vrf(links: LinkResolver, name: str) -> int:
    try:
        is_vrf = links.is_vrf(name)
    except NllError as e:
        log.debug("Lookup of %s failed: %s", name, e)
        is_vrf = False
    if not is_vrf:
        raise NllInvalidArg("Invalid VRF", name)
    ifindex = links.ifindex(name)
    if not ifindex:
        raise NllInvalidArg("VRF does not exist", name)
    return ifindex


def parse_selector(
    words: Words, links: LinkResolver, bucket: bool = False
) -> NhSelector:
    """
    SELECTOR for list and flush, BUCKET_SELECTOR with `bucket`.
    Keywords other than `id` and `nhid` may be abbreviated.
    """
    # pylint: disable=too-many-branches
    kwargs: Dict[str, Any] = {}
    while words:
        word = words.pop()
        if matches(word, "dev"):
            kwargs["oif"] = _device(links, words.pop_arg(word))
        elif not bucket and matches(word, "groups"):
            kwargs["groups"] = True
        elif matches(word, "master"):
            kwargs["master"] = _device(links, words.pop_arg(word))
        elif matches(word, "vrf"):
            kwargs["master"] = _vrf(links, words.pop_arg(word))
        elif word == "id":
            kwargs["id"] = _parse_id(words.pop_arg(word))
        elif bucket and word == "nhid":
            kwargs["nhid"] = _parse_id(words.pop_arg(word))
        elif not bucket and matches(word, "protocol"):
            kwargs["protocol"] = rtprot_a2n(words.pop_arg(word))
        elif not bucket and matches(word, "fdb"):
            kwargs["fdb"] = True
        elif matches(word, "help"):
            raise NhUsage()
        else:
            raise NllInvalidArg("unknown keyword", word)
    return NhSelector(**kwargs)


def _parse_encap(words: Words) -> NhEncap:
    kind = words.pop_arg("encap")
    if kind != "mpls":
        raise NllInvalidArg("unsupported encap type", kind)
    stack = words.pop_arg(kind)
    return NhEncap(
        LWTUNNEL_ENCAP_MPLS,
        tuple(
            parse_unsigned(label, "MPLS label", 2**20 - 1)
            for label in stack.split("/")
        ),
    )


def _parse_res_args(words: Words) -> Optional[NhResArgs]:
    res = NhResArgs()
    present = False
    while words and words.peek() in (
        "buckets",
        "idle_timer",
        "unbalanced_timer",
    ):
        word = words.pop()
        val = words.pop_arg(word)
        present = True
        if word == "buckets":
            res = res._replace(
                buckets=parse_unsigned(val, "buckets", MAX_U16)
            )
        elif word == "idle_timer":
            res = res._replace(idle_timer=parse_unsigned(val, "idle timer"))
        else:
            res = res._replace(
                unbalanced_timer=parse_unsigned(val, "unbalanced timer")
            )
    return res if present else None


def _parse_gateway(words: Words, family: int) -> Tuple[str, int]:
    word = words.pop_arg("via")
    explicit = {"inet": AF_INET, "inet6": AF_INET6}.get(word)
    if explicit is not None:
        family = explicit
        word = words.pop_arg(word)
    try:
        addr = ip_address(word)
    except ValueError as e:
        raise NllInvalidArg("invalid address", word) from e
    addr_family = AF_INET6 if addr.version == 6 else AF_INET
    if family not in (AF_UNSPEC, addr_family):
        raise NllInvalidArg("address family mismatch", word)
    return str(addr), addr_family


def parse_nh(
    words: Words, links: LinkResolver, family: int = AF_UNSPEC
) -> Dict[str, Any]:
    """Keyword arguments of `nll_nh_add` for the NH words"""
    # pylint: disable=too-many-branches
    kwargs: Dict[str, Any] = {"family": family}
    while words:
        word = words.pop()
        if word == "id":
            kwargs["id"] = _parse_id(words.pop_arg(word))
        elif word == "dev":
            kwargs["oif"] = _device(links, words.pop_arg(word))
        elif word == "via":
            kwargs["gateway"], kwargs["family"] = _parse_gateway(
                words, kwargs["family"]
            )
        elif word == "encap":
            kwargs["encap"] = _parse_encap(words)
        elif word in ("blackhole", "unreachable", "prohibit", "fdb", "onlink"):
            kwargs[word] = True
        elif word == "group":
            kwargs["group"] = parse_group_spec(words.pop_arg(word))
        elif word == "type":
            name = words.pop_arg(word)
            if name == "mpath":
                kwargs["group_type"] = NEXTHOP_GRP_TYPE_MPATH
            elif name == "resilient":
                kwargs["group_type"] = NEXTHOP_GRP_TYPE_RES
                kwargs["res_args"] = _parse_res_args(words)
            else:
                raise NllInvalidArg('"type" value is invalid', name)
        elif matches(word, "protocol"):
            kwargs["protocol"] = rtprot_a2n(words.pop_arg(word))
        elif word == "help":
            raise NhUsage()
        else:
            raise NllInvalidArg("unknown keyword", word)
    return kwargs


def parse_id_only(words: Words) -> int:
    """`id ID`, nothing else"""
    nhid: Optional[int] = None
    while words:
        word = words.pop()
        if word != "id":
            raise NhUsage()
        nhid = _parse_id(words.pop_arg(word))
    if nhid is None:
        raise NhUsage()
    return nhid


def parse_bucket_get(words: Words) -> Tuple[int, int]:
    """`id ID index INDEX` in any order"""
    nhid: Optional[int] = None
    index: Optional[int] = None
    while words:
        word = words.pop()
        if word == "id":
            nhid = _parse_id(words.pop_arg(word))
        elif word == "index":
            index = parse_unsigned(
                words.pop_arg(word), "bucket index", MAX_U16
            )
        else:
            raise NhUsage()
    if nhid is None or index is None:
        raise NhUsage()
    return nhid, index


############################################################


class Context(NamedTuple):
    opts: NhOptions
    links: LinkResolver
    out: TextIO

    def printer(self, stream: bool = False) -> NhPrinter:
        return NhPrinter(
            self.out,
            self.links.ifname,
            as_json=self.opts.json,
            pretty=self.opts.pretty,
            details=bool(self.opts.details),
            stream=stream,
        )


def _report(err: NllError, what: str = "RTNETLINK answers") -> int:
    if isinstance(err, NllDecodeError):
        log.error("BUG: %s", err)
    elif len(err.args) == 2 and isinstance(err.args[0], int):
        log.error("%s: %s", what, err.args[1])
    else:
        log.error("%s: %s", what, err)
    return -2


def _do_modify(
    modify: Callable[..., None], words: Words, ctx: Context
) -> int:
    kwargs = parse_nh(words, ctx.links, ctx.opts.family)
    try:
        modify(msgsize=ctx.opts.msgsize, **kwargs)
    except NllError as e:
        return _report(e)
    return 0


def do_add(words: Words, ctx: Context) -> int:
    return _do_modify(nll_nh_add, words, ctx)


def do_replace(words: Words, ctx: Context) -> int:
    return _do_modify(nll_nh_replace, words, ctx)


def do_delete(words: Words, ctx: Context) -> int:
    return _delete_one(parse_id_only(words), ctx)


def _delete_one(nhid: int, ctx: Context) -> int:
    try:
        nll_nh_del(nhid, msgsize=ctx.opts.msgsize)
    except NllError as e:
        return _report(e)
    return 0


def _show_one(nhid: int, ctx: Context) -> int:
    try:
        nh = nll_nh_get(
            nhid, family=ctx.opts.family, msgsize=ctx.opts.msgsize
        )
    except NllError as e:
        return _report(e)
    printer = ctx.printer()
    printer.add(nh)
    printer.close()
    return 0


def do_get(words: Words, ctx: Context) -> int:
    return _show_one(parse_id_only(words), ctx)


def do_list(words: Words, ctx: Context) -> int:
    selector = parse_selector(words, ctx.links)
    if selector.id is not None:
        return _show_one(selector.id, ctx)
    printer = ctx.printer()
    try:
        for nh in nll_get_nexthops(
            selector, family=ctx.opts.family, msgsize=ctx.opts.msgsize
        ):
            printer.add(nh)
    except NllDumpInterrupted:
        log.warning("Dump was interrupted and may be inconsistent.")
    except NllError as e:
        return _report(e, "Dump terminated")
    finally:
        printer.close()
    return 0


def do_flush(words: Words, ctx: Context) -> int:
    selector = parse_selector(words, ctx.links)
    if selector.id is not None:
        return _delete_one(selector.id, ctx)
    session = nll_nh_flush(
        selector, family=ctx.opts.family, msgsize=ctx.opts.msgsize
    )
    rc = 0
    if session.error is not None:
        rc = _report(
            session.error, "Dump terminated. Failed to flush nexthops"
        )
    print(session, file=ctx.out)
    return rc


def do_bucket_list(words: Words, ctx: Context) -> int:
    selector = parse_selector(words, ctx.links, bucket=True)
    printer = ctx.printer()
    try:
        for bucket in nll_get_nexthop_buckets(
            selector, family=ctx.opts.family, msgsize=ctx.opts.msgsize
        ):
            printer.add(bucket)
    except NllDumpInterrupted:
        log.warning("Dump was interrupted and may be inconsistent.")
    except NllError as e:
        return _report(e, "Dump terminated")
    finally:
        printer.close()
    return 0


def do_bucket_get(words: Words, ctx: Context) -> int:
    nhid, index = parse_bucket_get(words)
    try:
        bucket = nll_nh_bucket_get(
            nhid, index, family=ctx.opts.family, msgsize=ctx.opts.msgsize
        )
    except NllError as e:
        return _report(e)
    printer = ctx.printer()
    printer.add(bucket)
    printer.close()
    return 0


def do_monitor(words: Words, ctx: Context) -> int:
    if words:
        raise NhUsage()
    printer = ctx.printer(stream=True)
    with nll_nh_event_listener(block=True) as sk:
        try:
            for event in nll_nh_events(sk):
                printer.add(event)
        except NllError as e:
            return _report(e, "Monitor terminated")
    return 0


def do_help(  # pylint: disable=unused-argument
    words: Words, ctx: Context
) -> int:
    raise NhUsage()


_HANDLERS: Dict[NhVerb, Callable[[Words, Context], int]] = {
    NhVerb.ADD: do_add,
    NhVerb.REPLACE: do_replace,
    NhVerb.DELETE: do_delete,
    NhVerb.LIST: do_list,
    NhVerb.GET: do_get,
    NhVerb.FLUSH: do_flush,
    NhVerb.BUCKET_LIST: do_bucket_list,
    NhVerb.BUCKET_GET: do_bucket_get,
    NhVerb.MONITOR: do_monitor,
    NhVerb.HELP: do_help,
}
assert set(_HANDLERS) == set(NhVerb), "every verb needs a handler"


############################################################


def _argparser() -> ArgumentParser:
    parser = ArgumentParser(
        prog=PROG,
        description="Manage kernel nexthop objects over rtnetlink",
        usage=f"{PROG} [-4|-6] [-j [-p]] [-d] [-v] [--msgsize N] COMMAND",
    )
    family = parser.add_mutually_exclusive_group()
    family.add_argument(
        "-4",
        dest="family",
        action="store_const",
        const=AF_INET,
        default=AF_UNSPEC,
        help="IPv4 only",
    )
    family.add_argument(
        "-6",
        dest="family",
        action="store_const",
        const=AF_INET6,
        help="IPv6 only",
    )
    parser.add_argument(
        "-j", "--json", action="store_true", help="output JSON"
    )
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="indent JSON output"
    )
    parser.add_argument(
        "-d",
        "--details",
        action="store_true",
        help="show scope and protocol always",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="log more, may be repeated",
    )
    parser.add_argument(
        "--msgsize",
        type=int,
        default=NLL_MSGSIZE,
        help="request capacity in bytes (default: %(default)s)",
    )
    parser.add_argument("command", nargs=REMAINDER, help="see `help`")
    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    out: TextIO = sys.stdout,
    links: Optional[LinkResolver] = None,
) -> int:
    """Run one command, return exit status"""
    args = _argparser().parse_args(argv)
    opts = NhOptions(
        family=args.family,
        json=args.json,
        pretty=args.pretty,
        details=args.details,
        verbose=args.verbose,
        msgsize=args.msgsize,
    )
    basicConfig(
        stream=sys.stderr,
        format="%(message)s",
        level=(WARNING, INFO, DEBUG)[min(opts.verbose, 2)],
    )
    ctx = Context(opts, links if links is not None else LinkResolver(), out)
    try:
        verb, words = resolve_verb(args.command)
        log.debug("%s %s", verb.value, words.words)
        return _HANDLERS[verb](words, ctx)
    except NhUsage as e:
        print(str(e) if e.args else USAGE, file=sys.stderr)
        return -1
    except NllInvalidArg as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return -1


def run() -> None:
    sys.exit(main())
