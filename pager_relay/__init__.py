"""
pager-relay - forwards multimon-ng pager decodes to a PagerMon collector
"""

__version__ = "0.1.0"

# Lazy imports so `python -m pager_relay.reader` does not import itself twice
__all__ = ["LineDispatcher", "DeliverySender", "main", "__version__"]

def __getattr__(name):
    """Lazy import to avoid circular dependencies"""
    if name == "LineDispatcher":
        from .dispatcher import LineDispatcher
        return LineDispatcher
    if name == "DeliverySender":
        from .delivery import DeliverySender
        return DeliverySender
    if name == "main":
        from .reader import main
        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
