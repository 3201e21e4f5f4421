import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from src.api.routes import inventory, orders, packages, special_prices, statistics
from src.core.config import APP_HOST, APP_PORT, LOG_LEVEL
from src.core.database import engine
from src.models.database import Base

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield

app = FastAPI(
    title="Rental Inventory Backend",
    description="Rental inventory, orders and availability guard",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(inventory.router, prefix="/api/v1/inventory", tags=["inventory"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(special_prices.router, prefix="/api/v1/special-prices", tags=["special-prices"])
app.include_router(packages.router, prefix="/api/v1/packages", tags=["packages"])
app.include_router(statistics.router, prefix="/api/v1/statistics", tags=["statistics"])

@app.get("/")
async def root():
    return {"message": "Rental Inventory Backend API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=APP_HOST, port=APP_PORT)
