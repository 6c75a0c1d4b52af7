"""agentdir: directory verification and monitoring for agent-ready domains.

Probes domains for a well-known MCP manifest and in-page WebMCP hints, keeps an
append-only evidence ledger per domain, and derives a confidence score and a
sticky verification state from repeated best-effort observations.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
