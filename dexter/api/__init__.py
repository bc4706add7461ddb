from .base import BaseApi
from .saturnswap import SaturnSwapApi

__all__ = ["BaseApi", "SaturnSwapApi"]
