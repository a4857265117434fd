"""
Spredd Bridge API - read-only HTTP proxy for the web frontend.

Provides REST endpoints for:
- Route previews (POST /quote)
- Cross-chain status lookups (GET /status)
- Token balances (GET /tokens/{token}/balance/{account})
- Health checks (GET /health)

Signing never happens here; the frontend's wallet submits transactions.
"""
