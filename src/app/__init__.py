"""App: coração do sistema: orquestração, casos de uso e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- coordinators/: fluxos end-to-end (webhook → normalização → fila)
- queue/: fila priorizada de jobs e despacho para handlers
- use_cases/: handlers de job (sync, meeting_event)
- protection/: circuit breaker, throttle adaptativo e bypass tokens
- conflicts/: detecção e resolução de conflitos de agenda
- domain/: modelos canônicos (eventos, jobs, conflitos, compromissos)
- infra/: implementações concretas de IO
- protocols/: contratos/interfaces
- observability/: correlação por webhook e métricas via logs

Padrão: app executa; api adapta; config parametriza; utils apoia.
"""
