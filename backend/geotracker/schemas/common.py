"""
Shared schema types
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from geotracker.clock import as_naive_utc

# Timestamps arrive as naive or "Z"-suffixed ISO strings; store them naive UTC
UTCDateTime = Annotated[datetime, AfterValidator(as_naive_utc)]
