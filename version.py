"""Project version constants.

These constants are reported by the ``/api/version`` endpoint so that a
deployed service can be traced back to a specific engine and response
schema version.
"""

ENGINE_NAME: str = "pihistory"
ENGINE_VERSION: str = "0.1.0"

RESPONSE_SCHEMA_VERSION: int = 1
