"""Connectors: adapters de borda para APIs externas.

Estrutura:
- http_base: cliente httpx com retry e taxonomia de erros
- chatwoot/: webhook (guards) e cliente REST do Chatwoot
- krayin/: cliente REST do CRM Krayin
"""

__all__: list[str] = []
