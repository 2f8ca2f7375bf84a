"""API: camada de borda e adapters de providers.

Responsabilidades:
- Receber webhooks dos providers de calendário e reunião
- Verificar autenticidade antes de qualquer parsing
- Normalizar notificações para ChangeEvent
- Chamar APIs externas (Graph, Zoom, CalDAV)

Subpastas:
- verifiers/: verificação de assinatura/token por provider
- normalizers/: conversão de payloads externos → modelos internos
- connectors/: adapters HTTP por provider
- routes/: endpoints HTTP (webhooks, health, proteção, conflitos)

NÃO PODE conter: regras de fila, políticas de proteção, orquestração de use cases.
"""
