"""Smart contract metadata, ink! compatibility checks, RPC result types and raw RPC calls."""

__version__ = "0.1.0"

__all__ = [
    "byte_str",
    "compatibility",
    "contract",
    "primitives",
    "rpc",
    "source",
]