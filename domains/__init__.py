# Author: Bradley R. Kinnard
# worked example domains

from domains.base import Domain
from domains.registry import DOMAINS, get_domain, list_domains

__all__ = [
    "Domain",
    "DOMAINS",
    "get_domain",
    "list_domains",
]
