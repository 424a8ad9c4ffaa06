"""JSON-RPC models, signature checks, request models and metrics for an RPC proxy."""

__version__ = "0.1.0"