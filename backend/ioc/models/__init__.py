from .multi_rater import MultiRaterSnapshot
from .feedback_loop import FeedbackLoopRecord, FeedbackIterationRecord

__all__ = [
    "MultiRaterSnapshot",
    "FeedbackLoopRecord",
    "FeedbackIterationRecord",
]
