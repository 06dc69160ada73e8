from .queue_worker import QueueWorker

__all__ = ["QueueWorker"]
