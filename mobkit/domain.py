"""
domain.py — Syntax rules for the app domain.

The domain becomes a Java package and an Apple bundle identifier, so it has
to satisfy both.
"""

import string

from mobkit.report import MobkitError

RESERVED_PACKAGE_NAMES = ("kotlin", "java")


class DomainError(MobkitError):
    pass


def check_domain_syntax(domain: str) -> None:
    if not domain:
        raise DomainError("Domain can't be empty")
    if domain.startswith(".") or domain.endswith("."):
        raise DomainError("Domain can't start or end with a dot")
    labels = domain.split(".")
    for label in labels:
        if not label:
            raise DomainError("Labels cannot be empty")
        if label[0] in string.digits:
            raise DomainError(f"\"{label}\" label starts with a digit, which is invalid")
        # dict keeps first-seen order while dropping repeats
        bad_chars = dict.fromkeys(c for c in label if not (c.isascii() and c.isalnum()))
        if bad_chars:
            raise DomainError(
                f"\"{''.join(bad_chars)}\" are not valid ASCII alphanumeric characters"
            )
    if labels[-1] in RESERVED_PACKAGE_NAMES:
        raise DomainError(f"\"{labels[-1]}\" is reserved and cannot be used")


def reverse_domain(domain: str) -> str:
    return ".".join(reversed(domain.split(".")))
