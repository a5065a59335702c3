"""
Core imports for the clipcore library.

This module centralizes imports from third-party libraries used throughout
the clipcore library, ensuring consistency and simplifying dependency
management.
"""

import os  # noqa: F401
import json  # noqa: F401


from pydantic_settings import (  # noqa: F401
    BaseSettings,
    NoDecode,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)
from pydantic import (  # noqa: F401
    ConfigDict,
    Field,
    BaseModel,
    field_serializer,
    field_validator,
    model_validator,
)

from typing import Annotated, Any, Dict, List, Optional, Union, Literal  # noqa: F401

from pathlib import Path  # noqa: F401
from datetime import datetime, timedelta, timezone  # noqa: F401
