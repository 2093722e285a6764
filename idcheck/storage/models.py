from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RetrievalReference:
    """Time-limited URL for reading a staged document."""

    url: str = field(repr=False)
    valid_until: datetime
