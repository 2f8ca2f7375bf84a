"""Sinks de monitoramento/auditoria."""

from app.infra.monitoring.firestore_monitoring_sink import FirestoreMonitoringSink
from app.infra.monitoring.log_monitoring_sink import LogMonitoringSink

__all__ = ["FirestoreMonitoringSink", "LogMonitoringSink"]
