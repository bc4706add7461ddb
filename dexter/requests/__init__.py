from .cancel_swap_request import CancelSwapRequest
from .fetch_request import FetchRequest
from .swap_request import SwapRequest

__all__ = ["CancelSwapRequest", "FetchRequest", "SwapRequest"]
