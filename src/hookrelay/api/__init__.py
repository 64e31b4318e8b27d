"""FastAPI inspection API for hookrelay.

Exposes the recent-deliveries log for settings and debugging screens.

Example:
    ```python
    import uvicorn
    from hookrelay.api import create_app

    app = create_app(dispatcher=dispatcher)
    uvicorn.run(app, host="0.0.0.0", port=8000)
    ```
"""

from .app import app, create_app
from .router import router

__all__ = [
    "app",
    "create_app",
    "router",
]
