"""
Adapters package - External service connections.
Hosted services: Stripe (billing), Groq (LLM) and Supabase Storage (files).
"""

from adapters import stripe_adapter, groq_adapter, storage_adapter

__all__ = [
    "stripe_adapter",
    "groq_adapter",
    "storage_adapter",
]
