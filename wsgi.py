"""
Web Server Gateway Interface (WSGI) entry point
"""
import os
from coupon_service import create_app

PORT = int(os.getenv("PORT", "8080"))

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=PORT)
