""" Netlinknh: reexport all API objects """

# pylint: disable=wildcard-import, unused-wildcard-import
from .api_link import *
from .api_nexthop import *
from .api_mon import *
from .flush import *
from .selector import *
from .groupspec import *
from .parser_nexthop import *
from .datatypes import *
from .defs import *
from .classes import *
from .core import *
