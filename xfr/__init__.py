"""Building blocks for network bandwidth testing: ACLs, PSK auth, configuration, result diffs, mDNS discovery and client helpers."""

__version__ = "0.9.10"