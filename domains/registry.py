# Author: Bradley R. Kinnard
# domain registry - name -> domain bundle lookup for the cli

from domains.base import Domain
from domains.counter import BROKEN_COUNTER_DOMAIN, COUNTER_DOMAIN
from domains.todo import TODO_DOMAIN

DOMAINS: dict[str, Domain] = {
    d.name: d for d in (COUNTER_DOMAIN, BROKEN_COUNTER_DOMAIN, TODO_DOMAIN)
}


def get_domain(name: str) -> Domain:
    try:
        return DOMAINS[name]
    except KeyError:
        known = ", ".join(sorted(DOMAINS))
        raise ValueError(f"unknown domain {name!r}, expected one of: {known}") from None


def list_domains() -> list[tuple[str, str]]:
    return [(name, DOMAINS[name].description) for name in sorted(DOMAINS)]
