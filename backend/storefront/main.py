"""
# `storefront/main.py` — Application entry point

Creates the FastAPI app, configures logging and CORS, and mounts the routers:

**Public / signed-in:**
- `/auth`
- `/products`
- `/cart`

**Vendor console (`Vendor` role, enforced per route):**
- `/vendor/products`
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import settings
from storefront.routers import auth, carts, products

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize FastAPI app
app = FastAPI(
    title="Storefront API",
    description="Customer/vendor storefront: catalog, per-user cart, checkout and vendor product console.",
    version="1.0.0",
    redirect_slashes=False,
)

# Configure CORS from ALLOWED_ORIGINS (comma-separated, or "*")
allow_origins = [origin.strip() for origin in settings.allowed_origins.split(',')] if settings.allowed_origins else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(products.router)
app.include_router(products.vendor_router)
app.include_router(carts.router)

# Run the app directly with uvicorn (for development)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
