"""
PayPal Payout Relay - FastAPI Application

Entry point for the payroll payout relay.
"""

import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

from payments.routers.paypal_router import router as paypal_router
from services.paypal import PayPalService
from services.paypal_settings import load_settings

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Settings are read once; handlers only see this object
settings = load_settings()

# Create FastAPI app
app = FastAPI(
    title="PayPal Payout Relay",
    description="Relays payroll payments to PayPal Payouts",
    version="1.0.0"
)
app.state.settings = settings
app.state.paypal_service = PayPalService(settings)

# CORS configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(paypal_router)


# ============================================
# Health Check Endpoint
# ============================================

@app.get("/health")
async def health_check():
    """Liveness probe. Does not check PayPal."""
    return {"status": "ok"}


# ============================================
# Startup/Shutdown Events
# ============================================

@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("PayPal payout relay starting up...")
    logger.info(f"Sandbox API: {settings.sandbox.base_url}")
    logger.info(f"Live API: {settings.live.base_url}")
    logger.info(f"Batch partial results: {settings.batch_partial_results}")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("PayPal payout relay shutting down...")


# ============================================
# Run Server (Development Only)
# ============================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 5000))
    host = os.getenv("APP_HOST", "0.0.0.0")

    logger.info(f"💸 Starting PayPal relay on {host}:{port}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        log_level="info"
    )
