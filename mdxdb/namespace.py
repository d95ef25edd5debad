"""Namespace derivation for document identifiers."""

from urllib.parse import urlparse


def derive_namespace(identifier: str) -> str:
    """
    Derive the namespace of a ``scheme://host[/path...]`` identifier.

    With path segments the namespace is the host itself. Without them it is
    the parent domain (``docs.example.com`` -> ``example.com``) unless the
    host has two labels or fewer. Ports and userinfo are not part of the host.
    """
    parsed = urlparse(identifier if "://" in identifier else f"https://{identifier}")
    host = parsed.hostname
    if not host:
        raise ValueError(f"Identifier has no host: {identifier!r}")

    segments = [s for s in parsed.path.split("/") if s]
    if segments:
        return host

    labels = host.split(".")
    if len(labels) <= 2:
        return host
    return ".".join(labels[1:])
