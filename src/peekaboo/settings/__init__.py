"""
Settings and configuration for Peekaboo.

Example:
    ```python
    from peekaboo.settings import PeekabooSettings

    # Environment variables (PEEKABOO_*) and .env
    settings = PeekabooSettings()

    # Or a YAML/JSON file
    settings = PeekabooSettings.from_file("peekaboo.yaml")

    config = settings.to_sandbox_config()
    ```
"""

from peekaboo.settings.config import PeekabooSettings

__all__ = ["PeekabooSettings"]
