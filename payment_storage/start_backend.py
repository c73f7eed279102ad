#!/usr/bin/env python3
"""
Serve the payment storage HTTP API with uvicorn.

Host and port come from PAYMENT_STORAGE_HOST / PAYMENT_STORAGE_PORT.
"""
import os
import sys

# Add workspace to path
workspace_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if workspace_root not in sys.path:
    sys.path.insert(0, workspace_root)


def main() -> int:
    import uvicorn

    host = os.getenv("PAYMENT_STORAGE_HOST", "0.0.0.0")
    port = int(os.getenv("PAYMENT_STORAGE_PORT", "8000"))
    print(f"[payment_storage] Serving on http://{host}:{port}")
    try:
        uvicorn.run(
            "payment_storage.main:app",
            host=host,
            port=port,
            reload=False,
            log_level="info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n[payment_storage] Shutting down...")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
