from recall.services.scheduling.sm2 import SM2Result, compute

__all__ = ["SM2Result", "compute"]
