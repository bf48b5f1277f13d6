from __future__ import annotations

import ssl


def build_ssl_context(
    tls_ca: str = "",
    tls_cert: str = "",
    tls_key: str = "",
    insecure_skip_verify: bool = False,
) -> ssl.SSLContext | None:
    """Build the client SSL context for the query connection.

    Returns None when nothing is configured, leaving aiohttp's default
    certificate verification in place.
    """
    if not (tls_ca or tls_cert or insecure_skip_verify):
        return None

    ctx = ssl.create_default_context(cafile=tls_ca or None)
    if tls_cert:
        ctx.load_cert_chain(certfile=tls_cert, keyfile=tls_key or None)
    if insecure_skip_verify:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx
