"""Entry point for `python -m design_sentinel`.

Usage:
    FIGMA_TOKEN=... python -m design_sentinel
    SENTINEL_DIRECTIVES_FILE=tracked.json SENTINEL_DRY_RUN=true python -m design_sentinel
"""

from __future__ import annotations

import asyncio

from design_sentinel.app import main

asyncio.run(main())
