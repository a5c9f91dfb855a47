"""Core module - configuration and observability shared by the resolver and API.

Producer matching logic belongs in /producer_resolver/.
"""

__version__ = "1.0.0"
