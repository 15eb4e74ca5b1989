import hashlib
import hmac


def compute_signature(security_key: str, url: str) -> str:
    """
    Computes the PTV request signature: HMAC-SHA1 of the relative request URL,
    keyed with the developer's security key, as upper-case hex.
    """
    digest = hmac.new(security_key.encode("utf-8"), url.encode("utf-8"), hashlib.sha1)
    return digest.hexdigest().upper()


def sign_request_url(developer_id: str, security_key: str, request_url: str) -> str:
    """
    Appends the developer id and the signature to a relative request URL.

    The signature covers everything up to and including the devid parameter,
    so devid always comes first and signature always comes last.
    """

    # A descriptor may already carry its own query string
    query_char = "&" if "?" in request_url else "?"
    url = f"{request_url}{query_char}devid={developer_id}"

    signature = compute_signature(security_key, url)

    return f"{url}&signature={signature}"
