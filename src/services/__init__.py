from .workers import EnableWorker, DisableWorker

__all__ = [
    "EnableWorker",
    "DisableWorker"
]
