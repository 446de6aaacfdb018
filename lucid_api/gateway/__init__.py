"""LLM gateway layer.

Provides async infrastructure for forwarding shopping requests to LLM
vendors with:
  - Fixed window per-client Rate Limiter
  - Vendor-Specific Adapters (DeepSeek search, OpenAI chat)
  - Response Normalizer (canonical Product schema)
  - ShoppingGateway orchestrator (validation and error mapping)
"""
