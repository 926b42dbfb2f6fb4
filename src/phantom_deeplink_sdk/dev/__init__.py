from .diagnostics import check_redirect_url, probe_linking, simulate_connect_response

__all__ = ["check_redirect_url", "probe_linking", "simulate_connect_response"]
