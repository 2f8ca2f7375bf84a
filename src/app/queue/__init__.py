"""Fila priorizada de jobs e roteamento por tipo."""

from app.queue.dispatcher import JobDispatcher
from app.queue.job_queue import PriorityJobQueue

__all__ = ["JobDispatcher", "PriorityJobQueue"]
