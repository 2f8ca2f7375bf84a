"""Connectors por provider: adapters de borda para APIs externas.

Estrutura:
- microsoft_graph/: Microsoft Graph (calendário Outlook)
- zoom/: Zoom Meetings API
- caldav/: servidores CalDAV (iCloud e afins)

Google Calendar usa o SDK oficial em app/infra/calendar.
Cada provider tem seu próprio connector, garantindo SRP e isolamento de falhas.
"""

__all__: list[str] = []
