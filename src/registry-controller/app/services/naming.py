"""Domain and resource name helpers."""

from __future__ import annotations


def registry_domain(subdomain: str, root_domain: str) -> str:
    """``<subdomain>.<root_domain>``."""
    return f"{subdomain}.{root_domain}"


def registry_domain_and_port(subdomain: str, root_domain: str, port: int) -> str:
    return f"{registry_domain(subdomain, root_domain)}:{port}"


def auth_secret_name(prefix: str, version: int) -> str:
    """Name of the auth secret holding credentials for ``version``."""
    if version < 1:
        raise ValueError(f"Auth secret versions start at 1, got {version}")
    return f"{prefix}{version}"


def certificate_paths(cert_root: str, domain: str) -> tuple[str, str]:
    """Full chain and private key paths for ``domain`` below ``cert_root``.

    Follows the certbot ``live/<domain>/`` layout.
    """
    base = f"{cert_root.rstrip('/')}/live/{domain}"
    return f"{base}/fullchain.pem", f"{base}/privkey.pem"
