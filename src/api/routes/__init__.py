"""Rotas HTTP da API: adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (webhooks, proteção, conflitos, health)
- Traduzir request/response para os serviços do container
- Respostas HTTP apropriadas

Estrutura:
- routes/webhooks/: recebimento por provider e consulta de jobs
- routes/protection/: dashboard de breaker/throttle
- routes/conflicts/: detecção e decisões pendentes
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
