""" Netlink definitions, generated by mknetlinkdefs. Do not edit. """

# pylint: disable=invalid-name

# define /usr/include/linux/netlink.h
NLM_F_REQUEST = 1
NLM_F_MULTI = 2
NLM_F_ACK = 4
NLM_F_ECHO = 8
NLM_F_DUMP_INTR = 16
NLM_F_DUMP_FILTERED = 32
NLM_F_ROOT = 256
NLM_F_MATCH = 512
NLM_F_ATOMIC = 1024
NLM_F_DUMP = 768
NLM_F_REPLACE = 256
NLM_F_EXCL = 512
NLM_F_CREATE = 1024
NLM_F_APPEND = 2048
NLM_F_NONREC = 256
NLM_F_BULK = 512
NLM_F_CAPPED = 256
NLM_F_ACK_TLVS = 512
NLMSG_ALIGNTO = 4
NLMSG_NOOP = 1
NLMSG_ERROR = 2
NLMSG_DONE = 3
NLMSG_OVERRUN = 4
NLMSG_MIN_TYPE = 16
NETLINK_ADD_MEMBERSHIP = 1
NETLINK_DROP_MEMBERSHIP = 2
NETLINK_EXT_ACK = 11
NETLINK_GET_STRICT_CHK = 12
NLA_F_NESTED = 32768
NLA_F_NET_BYTEORDER = 16384
NLA_TYPE_MASK = -49153
NLA_ALIGNTO = 4

# define /usr/include/linux/rtnetlink.h
RTM_NEWLINK = 16
RTM_DELLINK = 17
RTM_GETLINK = 18
RTM_SETLINK = 19
RTM_NEWNEXTHOP = 104
RTM_DELNEXTHOP = 105
RTM_GETNEXTHOP = 106
RTM_NEWNEXTHOPBUCKET = 116
RTM_DELNEXTHOPBUCKET = 117
RTM_GETNEXTHOPBUCKET = 118
RTPROT_UNSPEC = 0
RTPROT_REDIRECT = 1
RTPROT_KERNEL = 2
RTPROT_BOOT = 3
RTPROT_STATIC = 4
RTPROT_GATED = 8
RTPROT_RA = 9
RTPROT_MRT = 10
RTPROT_ZEBRA = 11
RTPROT_BIRD = 12
RTPROT_DNROUTED = 13
RTPROT_XORP = 14
RTPROT_NTK = 15
RTPROT_DHCP = 16
RTPROT_MROUTED = 17
RTPROT_KEEPALIVED = 18
RTPROT_BABEL = 42
RTPROT_OPENR = 99
RTPROT_BGP = 186
RTPROT_ISIS = 187
RTPROT_OSPF = 188
RTPROT_RIP = 189
RTPROT_EIGRP = 192
RTM_F_NOTIFY = 256
RTM_F_CLONED = 512
RTM_F_EQUALIZE = 1024
RTM_F_PREFIX = 2048
RTM_F_LOOKUP_TABLE = 4096
RTM_F_FIB_MATCH = 8192
RTM_F_OFFLOAD = 16384
RTM_F_TRAP = 32768
RTM_F_OFFLOAD_FAILED = 536870912
RTNH_F_DEAD = 1
RTNH_F_PERVASIVE = 2
RTNH_F_ONLINK = 4
RTNH_F_OFFLOAD = 8
RTNH_F_LINKDOWN = 16
RTNH_F_UNRESOLVED = 32
RTNH_F_TRAP = 64
RTNLGRP_NONE = 0
RTNLGRP_LINK = 1
RTNLGRP_NEXTHOP = 32

# enum /usr/include/linux/rtnetlink.h
RT_SCOPE_UNIVERSE = 0
RT_SCOPE_SITE = 200
RT_SCOPE_LINK = 253
RT_SCOPE_HOST = 254
RT_SCOPE_NOWHERE = 255

# enum /usr/include/linux/if_link.h
IFLA_UNSPEC = 0
IFLA_ADDRESS = 1
IFLA_BROADCAST = 2
IFLA_IFNAME = 3
IFLA_MTU = 4
IFLA_LINK = 5
IFLA_MASTER = 10
IFLA_LINKINFO = 18
IFLA_INFO_UNSPEC = 0
IFLA_INFO_KIND = 1
IFLA_INFO_DATA = 2

# define /usr/include/linux/nexthop.h
NEXTHOP_GRP_TYPE_MAX = 1
NHA_MAX = 17
NHA_RES_GROUP_MAX = 4
NHA_RES_BUCKET_MAX = 3

# enum /usr/include/linux/nexthop.h
NEXTHOP_GRP_TYPE_MPATH = 0
NEXTHOP_GRP_TYPE_RES = 1
NHA_UNSPEC = 0
NHA_ID = 1
NHA_GROUP = 2
NHA_GROUP_TYPE = 3
NHA_BLACKHOLE = 4
NHA_OIF = 5
NHA_GATEWAY = 6
NHA_ENCAP_TYPE = 7
NHA_ENCAP = 8
NHA_GROUPS = 9
NHA_MASTER = 10
NHA_FDB = 11
NHA_RES_GROUP = 12
NHA_RES_BUCKET = 13
NHA_OP_FLAGS = 14
NHA_GROUP_STATS = 15
NHA_HW_STATS_ENABLE = 16
NHA_HW_STATS_USED = 17
NHA_RES_GROUP_PAD = 0
NHA_RES_GROUP_BUCKETS = 1
NHA_RES_GROUP_IDLE_TIMER = 2
NHA_RES_GROUP_UNBALANCED_TIMER = 3
NHA_RES_GROUP_UNBALANCED_TIME = 4
NHA_RES_BUCKET_PAD = 0
NHA_RES_BUCKET_INDEX = 1
NHA_RES_BUCKET_IDLE_TIME = 2
NHA_RES_BUCKET_NH_ID = 3
NHA_UNREACHABLE = 18
NHA_PROHIBIT = 19

# define /usr/include/linux/lwtunnel.h
LWTUNNEL_ENCAP_MAX = 10

# enum /usr/include/linux/lwtunnel.h
LWTUNNEL_ENCAP_NONE = 0
LWTUNNEL_ENCAP_MPLS = 1
LWTUNNEL_ENCAP_IP = 2
LWTUNNEL_ENCAP_ILA = 3
LWTUNNEL_ENCAP_IP6 = 4
LWTUNNEL_ENCAP_SEG6 = 5
LWTUNNEL_ENCAP_BPF = 6
LWTUNNEL_ENCAP_SEG6_LOCAL = 7
LWTUNNEL_ENCAP_RPL = 8
LWTUNNEL_ENCAP_IOAM6 = 9
LWTUNNEL_ENCAP_XFRM = 10

# enum /usr/include/linux/mpls_iptunnel.h
MPLS_IPTUNNEL_UNSPEC = 0
MPLS_IPTUNNEL_DST = 1
MPLS_IPTUNNEL_TTL = 2

# define /usr/include/linux/mpls.h
MPLS_LS_LABEL_MASK = 4294963200
MPLS_LS_LABEL_SHIFT = 12
MPLS_LS_TC_MASK = 3584
MPLS_LS_TC_SHIFT = 9
MPLS_LS_S_MASK = 256
MPLS_LS_S_SHIFT = 8
MPLS_LS_TTL_MASK = 255
MPLS_LS_TTL_SHIFT = 0
