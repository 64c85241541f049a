"""Price information requests and technical-commercial proposals over an in-memory store."""

__version__ = "0.1.0"

__all__ = [
    "background",
    "checks",
    "commercial_offer",
    "domain",
    "listing",
    "messages",
    "monolith",
    "partners",
    "price_info",
    "proposals",
    "requests",
    "store",
]