from urllib.parse import urlparse
import socket
from storefront import config
from storefront.infra.supabase_client import create_service_client

HEALTH_TABLES = ("products", "orders", "processed_checkout_sessions")

def _check_table(client, name: str):
    try:
        res = client.table(name).select("*").limit(1).execute()
        cnt = len(res.data or [])
        return {"ok": True, "rows": cnt}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info():
    """
    Diagnostic Supabase: résolution DNS de l'hôte puis lecture d'une ligne par table utilisée.
    Ne lève jamais: chaque échec est reporté dans le JSON.
    """
    effective_url = config.SUPABASE_URL
    parsed = urlparse(effective_url) if effective_url else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info = {
        "supabase_url": effective_url,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = create_service_client()
    except RuntimeError as e:
        info["error"] = str(e)
        return info
    for t in HEALTH_TABLES:
        info["tables"][t] = _check_table(client, t)
    info["connect_ok"] = any(t["ok"] for t in info["tables"].values())
    return info
